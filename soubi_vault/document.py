from typing import Any, Optional
from collections.abc import Iterator, Mapping, MutableMapping
import orjson


SECTIONS = ('assets', 'loadouts', 'presets', 'intel', 'targets')


def default_data(data_path: Optional[str] = None) -> dict:
    """Return a fresh copy of the empty inventory schema."""
    data: dict[str, Any] = {
        'settings': {
            'theme': 'dark',
            'dataPath': data_path,
        },
    }
    for section in SECTIONS:
        data[section] = []
    return data


class InventoryDocument(MutableMapping[str, Any]):
    """Inventory document dict-like object.

    Wraps the plaintext tree kept in the encrypted store. Top-level writes
    and deletes mark the document as changed; nested edits should call
    ``changed()`` explicitly.
    """

    def __init__(
        self,
        data: Optional[Mapping[str, Any]] = None,
        new: bool = False
    ) -> None:
        self._data: dict[str, Any] = dict(data) if data else {}
        self._new = new
        # If new, mark as changed so it gets saved
        self._changed = new

    def __repr__(self) -> str:
        return (
            f'<Inventory-Document [new:{self._new}, changed:{self._changed}] '
            f'sections={list(self._data.keys())}>'
        )

    @classmethod
    def default(cls, data_path: Optional[str] = None) -> 'InventoryDocument':
        return cls(default_data(data_path), new=True)

    # --- Properties ---

    @property
    def new(self) -> bool:
        return self._new

    @property
    def empty(self) -> bool:
        return not bool(self._data)

    @property
    def settings(self) -> dict:
        return self._data.setdefault('settings', {})

    @property
    def assets(self) -> list:
        return self._data.setdefault('assets', [])

    @property
    def loadouts(self) -> list:
        return self._data.setdefault('loadouts', [])

    @property
    def intel(self) -> list:
        return self._data.setdefault('intel', [])

    @property
    def targets(self) -> list:
        return self._data.setdefault('targets', [])

    @property
    def is_changed(self) -> bool:
        return self._changed

    @is_changed.setter
    def is_changed(self, value: bool) -> None:
        self._changed = value

    def changed(self) -> None:
        self._changed = True

    def is_valid(self) -> bool:
        """Check the minimal structure an inventory document must have."""
        return (
            isinstance(self._data.get('assets'), list)
            and self._data.get('loadouts') is not None
        )

    def to_dict(self) -> dict:
        """Return the underlying tree (for persistence)."""
        return self._data

    def invalidate(self) -> None:
        """Clear all document data."""
        self._changed = True
        self._data = {}

    # --- Magic Methods ---

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._changed = True

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self._changed = True

    def encode(self) -> bytes:
        """encode

            Encode the document as JSON.

        Raises:
            RuntimeError: Error converting data to json.

        Returns:
            bytes: json version of the document
        """
        try:
            return orjson.dumps(self._data, option=orjson.OPT_INDENT_2)
        except orjson.JSONEncodeError as err:
            raise RuntimeError(err) from err

    @classmethod
    def decode(cls, data: bytes) -> 'InventoryDocument':
        """decode.

            Build a document from JSON bytes.

        Raises:
            ValueError: data is not a JSON object.
        """
        parsed = orjson.loads(data)
        if not isinstance(parsed, dict):
            raise ValueError('Inventory document must be a JSON object')
        return cls(parsed)
