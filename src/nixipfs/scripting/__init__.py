"""
Support for writing scripts on top of nixipfs.

Each module whose name starts with `nixipfs_` in this package is an
independent extension module, e.g.:

    from nixipfs.scripting import nixipfs_logging
"""
