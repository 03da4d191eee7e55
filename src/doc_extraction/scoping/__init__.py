"""Scoping module for the document extraction application.

This module contains the folder-scope model of extraction fields and
the resolver that filters fields down to a folder context.
"""

from .field_scope import ROOT, FolderContext, FieldScope, ScopedField, FieldScopeResolver

__all__ = ["ROOT", "FolderContext", "FieldScope", "ScopedField", "FieldScopeResolver"]
