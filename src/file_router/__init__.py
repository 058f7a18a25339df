"""
File Router - Extension-Bucketing File Dispatcher

Moves files out of a watched source folder into a destination tree.

This package provides functionality to:
- Route each file into a bucket folder named after its lowercase extension
- Rename routed files with a "moved-" prefix
- Preview moves with a dry run
- Resolve destination conflicts interactively (terminal or dialog)
- Classify locked-file failures separately from ordinary I/O errors
- Persist the last-used source/destination folders
"""

# Product identity constants
PRODUCT_NAME = "File Router"
PRODUCT_VERSION = "1.0.0"
PRODUCT_DESCRIPTION = "Extension-Bucketing File Dispatcher"

__version__ = PRODUCT_VERSION
__author__ = "File Router Team"
