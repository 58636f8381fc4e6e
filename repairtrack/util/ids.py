import ulid


def new_id(prefix: str = "") -> str:
    """Sortable string id: a ULID behind an optional type prefix (``wf_``, ``rep_``...)."""
    return prefix + ulid.new().str
