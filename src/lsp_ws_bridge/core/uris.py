"""
Helpers URI file:// pour la racine du workspace.
"""
import posixpath

from .constants import FILE_SCHEME


def to_file_uri(path: str) -> str:
    """Exprime un chemin absolu en URI file:// (sans ré-encodage, comme le client)."""
    return f"{FILE_SCHEME}{path}"


def is_file_uri(uri: str) -> bool:
    return uri.startswith(FILE_SCHEME)


def join_workspace_path(workspace_root: str, relative: str) -> str:
    """
    Joint un chemin client sur la racine du workspace.

    Un `/` initial est traité comme relatif à la racine, et le résultat est
    normalisé (`..`, `.`, séparateurs doublés).

    Example:
        >>> join_workspace_path("/proj", "foo/bar.py")
        '/proj/foo/bar.py'
        >>> join_workspace_path("/proj", "/src/../lib/x.py")
        '/proj/lib/x.py'
        >>> join_workspace_path("/", "foo/bar.py")
        '/foo/bar.py'
    """
    return posixpath.normpath(posixpath.join(workspace_root, relative.lstrip("/")))
