"""State layer.

Derives the served status from the group cache: the single global
speed/acceleration track and the snapshot assembler.
"""
