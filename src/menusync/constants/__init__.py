"""Configuration constants.

Re-exports all constants for convenient importing:
    from menusync.constants import ROOT_PATH, DEFAULT_ROOT_DISPLAY_NAME
"""

from menusync.constants.sync import *  # noqa: F403
