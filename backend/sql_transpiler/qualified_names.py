"""Resolution of table qualifiers (alias, bare name, schema.name, catalog.schema.name)."""

from typing import Dict, List, Optional, Set

from .model_types import DEFAULT_NAMESPACE


def _key(qualifier: str) -> str:
    return qualifier.lower()


class QualifiedNameIndex:
    """
    Maps every way a query can refer to a table onto the table id.

    One index is built per SELECT scope. Unaliased references that share a bare
    name (``sales.orders`` and ``archive.orders``) make the bare name ambiguous:
    it resolves to nothing and the caller reports it.
    """

    def __init__(self):
        self._ids: Dict[str, str] = {}
        self._ambiguous: Set[str] = set()
        self.table_ids: List[str] = []

    def register(
        self,
        table_id: str,
        name: str,
        schema: str = DEFAULT_NAMESPACE,
        catalog: str = DEFAULT_NAMESPACE,
        alias: Optional[str] = None,
    ) -> Optional[str]:
        """
        Register a table reference.

        Returns:
            A warning message when the bare table name became ambiguous, else None
        """
        self.table_ids.append(table_id)
        self._ids[_key(table_id)] = table_id
        if alias:
            self._ids[_key(alias)] = table_id
            return None

        self._ids[_key(f"{schema}.{name}")] = table_id
        self._ids[_key(f"{catalog}.{schema}.{name}")] = table_id

        bare = _key(name)
        if bare in self._ambiguous:
            return None
        existing = self._ids.get(bare)
        if existing is not None and existing != table_id:
            self._ambiguous.add(bare)
            del self._ids[bare]
            return (
                f"Table name '{name}' is referenced more than once without an alias; "
                f"columns qualified only by '{name}' cannot be attributed to a single table"
            )
        self._ids[bare] = table_id
        return None

    def resolve(self, qualifier: str) -> Optional[str]:
        """Return the table id for a qualifier, or None when unknown or ambiguous."""
        key = _key(qualifier)
        if key in self._ambiguous:
            return None
        if key in self._ids:
            return self._ids[key]
        # Qualifiers written with the default namespace omitted
        return self._ids.get(_key(f"{DEFAULT_NAMESPACE}.{qualifier}"))

    def is_ambiguous(self, qualifier: str) -> bool:
        return _key(qualifier) in self._ambiguous

    def previous_table(self, table_id: str) -> Optional[str]:
        """The table registered immediately before ``table_id`` in this scope."""
        if table_id not in self.table_ids:
            return None
        position = self.table_ids.index(table_id)
        return self.table_ids[position - 1] if position > 0 else None
