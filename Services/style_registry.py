import copy
import json
import random
import string

ID_CHARS = string.ascii_uppercase + string.digits
ID_LENGTH = 6


def _canonical(value) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


class StyleRegistry:
    """
    Call-scoped, content-addressed store of style values (globalVars.styles).

    register() dedups by structure: two equal values get the same id, the
    first id minted for a value wins. register_named() stores under a
    source-provided name with no dedup and no collision check.

    Ids come from a generator seeded per registry, so two fresh registries
    fed the same values hand out the same ids.
    """

    def __init__(self, extra_styles: dict | None = None, seed: int = 0):
        self.styles: dict = {}
        self.extra_styles = extra_styles or {}
        self._index: dict[str, str] = {}
        self._rng = random.Random(seed)

    def _lookup(self, key: str):
        style_id = self._index.get(key)
        if style_id is None or style_id not in self.styles:
            return None
        # named entries can be overwritten after being indexed
        if _canonical(self.styles[style_id]) != key:
            return None
        return style_id

    def _mint(self, kind: str) -> str:
        while True:
            suffix = "".join(self._rng.choice(ID_CHARS) for _ in range(ID_LENGTH))
            style_id = f"{kind}_{suffix}"
            if style_id not in self.styles:
                return style_id

    def register(self, value, kind: str) -> str:
        key = _canonical(value)
        existing = self._lookup(key)
        if existing:
            return existing

        style_id = self._mint(kind)
        self.styles[style_id] = copy.deepcopy(value)
        self._index[key] = style_id
        return style_id

    def register_named(self, name: str, value) -> str:
        self.styles[name] = copy.deepcopy(value)
        key = _canonical(value)
        if self._lookup(key) is None:
            self._index[key] = name
        return name

    def style_name(self, node: dict, keys) -> str | None:
        """Human-readable name of the first published style the node references under `keys`."""
        style_map = node.get("styles")
        if not isinstance(style_map, dict):
            return None
        for key in keys:
            style_id = style_map.get(key)
            if not style_id:
                continue
            meta = self.extra_styles.get(style_id)
            if isinstance(meta, dict) and meta.get("name"):
                return meta["name"]
        return None

    def to_global_vars(self) -> dict:
        return {"styles": self.styles}
