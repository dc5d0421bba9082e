"""
Project-wide constants or "settings" that are unlikely to change at runtime.
"""

METADATA_FILENAME = "metadata.txt"  # sidecar in source and output folders
METADATA_ATTRIBUTE = "metadata"  # container attribute holding the sidecar text
CONTAINER_STEM = "images"
CONTAINER_EXTENSION = ".h5"
CONTAINER_FILENAME = CONTAINER_STEM + CONTAINER_EXTENSION

TARGET_CHANNELS = 3
