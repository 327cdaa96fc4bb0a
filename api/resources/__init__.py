"""
Generic resource handling: one handler shape for every entity descriptor.
"""
