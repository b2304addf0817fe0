"""Menu synchronization constants.

These values define how menu paths are keyed and rendered, and the defaults
used when a pass recreates the root or persists the graph.
"""

# =============================================================================
# Menu Paths
# =============================================================================
# Paths are tuples of segment names. The source root and the GeneratedRoot
# both sit at the empty path. PATH_SEPARATOR is used only for display and
# for the debug full_path stored in node metadata, never for matching.

ROOT_PATH: tuple[str, ...] = ()
PATH_SEPARATOR = "/"

# =============================================================================
# Defaults
# =============================================================================
# Name given to a GeneratedRoot created during missing-root recovery when
# the source root has no display name.

DEFAULT_ROOT_DISPLAY_NAME = "Menu Items"

# Basename of the persisted host graph inside the graph directory.
GRAPH_FILE_NAME = "graph.json"
GRAPH_METADATA_FILE_NAME = "metadata.json"
