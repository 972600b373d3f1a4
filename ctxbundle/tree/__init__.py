"""File tree construction with gitignore-compatible scoped filtering."""

from .ignore import IgnoreResolver, IgnoreRule, ScopeFrame, Matcher, push_scope
from .builder import (
    TreeBuilder, FileNode, FlatEntry, NodeKind, TreeBuildEmptyInput,
    find_node, set_selected, selected_files,
)

__all__ = [
    "IgnoreResolver", "IgnoreRule", "ScopeFrame", "Matcher", "push_scope",
    "TreeBuilder", "FileNode", "FlatEntry", "NodeKind", "TreeBuildEmptyInput",
    "find_node", "set_selected", "selected_files",
]
