"""Ingestion layer.

Everything that talks to the game API on a schedule lives here: the
per-group refresh loop and the subscription setup.  Only the refresh
loop writes to the group cache.
"""
