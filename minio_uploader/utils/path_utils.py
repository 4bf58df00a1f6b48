from typing import Optional


def count_digits(number: int) -> int:
    """
    Number of decimal digits in a non-negative integer (0 has one digit).
    """
    return len(str(abs(number)))


def chunk_prefix(digest: str) -> str:
    """
    Staging "directory" holding every chunk of one upload session.
    """
    return f"{digest}/"


def chunk_path(digest: str, index: int, total_pieces: int) -> str:
    """
    Build the staging object name for a chunk.

    The index is left-padded with zeros to the digit count of total_pieces,
    so for a fixed total the names sort lexicographically in index order:
    chunk_path("d", 3, 10) == "d/03", chunk_path("d", 3, 100) == "d/003".
    """
    width = count_digits(total_pieces)
    return f"{chunk_prefix(digest)}{index:0{width}d}"


def chunk_index(object_name: str, digest: str) -> Optional[int]:
    """
    Decode the chunk index from a staging object name.

    Returns None for names outside the session prefix or with a non-numeric tail.
    """
    prefix = chunk_prefix(digest)
    if not object_name.startswith(prefix):
        return None
    tail = object_name[len(prefix):]
    if not tail.isascii() or not tail.isdigit():
        return None
    return int(tail)


def trim_head(path: str) -> str:
    """
    Strip one leading "/" so the path matches MinIO object names.
    """
    if not path:
        return ""
    return path[1:] if path.startswith("/") else path


def add_tail(path: str) -> str:
    """
    Append one trailing "/" so the path is treated as a folder.
    """
    if not path:
        return ""
    return path if path.endswith("/") else path + "/"
