"""
Migration engine - rewrites older source shapes into the current one.

Migration runs before construction and only touches shape: renamed keys,
restructured objects, values whose type changed meaning. It never
validates business rules.

Each document model declares an ordered list of rules. A rule detects a
legacy shape (keys present, optionally keys absent, optionally a value
test) and rewrites it. Rules run in declaration order, and each sees the
output of the ones before it, so one pass can walk a document through
several schema generations.

A rule must consume the shape it detects. That is what makes migration
idempotent, and the migrator enforces it.

Usage:
    migrator = Migrator([
        MigrationRule.rename("image", "img", version=2),
        MigrationRule.rename("img", "texture.src", version=3),
    ], version=3)
    migrator.migrate({"image": "a.png"})   # {"texture": {"src": "a.png"}}
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Callable

from engine.data.constants import VERSION_KEY
from engine.data.errors import MigrationError, MigrationRuleConflict, SchemaDefinitionError
from engine.data.utils import has_path, get_path, pop_path, set_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MigrationRule:
    """
    One rewrite step between schema generations.

    Attributes:
        detects: Dotted keys whose presence marks the legacy shape
        rewrite: Function receiving the data dict; mutates it in place
            or returns a replacement
        version: Schema version the rule migrates data to
        absent: Dotted keys that must be missing for the rule to apply
        when: Extra predicate over the data, for value-based detection
        name: Label used in logs and errors
    """
    detects: tuple[str, ...]
    rewrite: Callable[[dict[str, Any]], dict[str, Any] | None]
    version: int
    absent: tuple[str, ...] = ()
    when: Callable[[Mapping[str, Any]], bool] | None = field(default=None, compare=False)
    name: str = ""

    def __post_init__(self):
        if not self.detects:
            raise SchemaDefinitionError("A migration rule must detect at least one key")
        object.__setattr__(self, "detects", tuple(self.detects))
        object.__setattr__(self, "absent", tuple(self.absent))
        if not self.name:
            object.__setattr__(self, "name", f"v{self.version}:{'+'.join(self.detects)}")

    @property
    def shape(self) -> tuple[frozenset[str], frozenset[str], Any]:
        """The detected shape; two rules may not claim the same one."""
        return frozenset(self.detects), frozenset(self.absent), self.when

    def matches(self, data: Mapping[str, Any]) -> bool:
        if not all(has_path(data, key) for key in self.detects):
            return False
        if any(has_path(data, key) for key in self.absent):
            return False
        return self.when is None or bool(self.when(data))

    def apply(self, data: dict[str, Any]) -> dict[str, Any]:
        result = self.rewrite(data)
        return data if result is None else result

    # Common rewrites

    @classmethod
    def rename(cls, old: str, new: str, *, version: int, name: str = "") -> MigrationRule:
        """
        Move the value at `old` to `new` (both dotted paths).

        If `new` is already present the current value wins and the legacy
        key is discarded.
        """
        def rewrite(data: dict[str, Any]) -> None:
            value = pop_path(data, old)
            if not has_path(data, new):
                set_path(data, new, value)

        return cls(detects=(old,), rewrite=rewrite, version=version, name=name or f"rename {old} -> {new}")

    @classmethod
    def move_into(cls, key: str, parent: str, *, version: int, name: str = "") -> MigrationRule:
        """Move `key` under the object at `parent`, keeping its last name segment."""
        target = f"{parent}.{key.rsplit('.', 1)[-1]}"
        return cls.rename(key, target, version=version, name=name or f"move {key} into {parent}")

    @classmethod
    def coerce(
        cls,
        key: str,
        test: Callable[[Any], bool],
        convert: Callable[[Any], Any],
        *,
        version: int,
        name: str = "",
    ) -> MigrationRule:
        """
        Convert the value at `key` when `test` recognizes its legacy form.

        `convert` must produce a value `test` no longer accepts.
        """
        def when(data: Mapping[str, Any]) -> bool:
            return test(get_path(data, key))

        def rewrite(data: dict[str, Any]) -> None:
            set_path(data, key, convert(get_path(data, key)))

        return cls(detects=(key,), rewrite=rewrite, version=version, when=when,
                   name=name or f"coerce {key}")


class Migrator:
    """
    Applies a document kind's migration rules.

    Args:
        rules: Rules in application order
        version: Current schema version of the document kind
        min_version: Oldest schema version still migrated
        document: Document kind name, for messages

    Raises:
        MigrationRuleConflict: Two rules claim the same detected shape
        SchemaDefinitionError: Rule versions are out of order or out of range
    """

    def __init__(
        self,
        rules: Iterable[MigrationRule] = (),
        *,
        version: int = 1,
        min_version: int = 1,
        document: str = "",
    ):
        self.rules = tuple(rules)
        self.version = version
        self.min_version = min_version
        self.document = document
        self.validate_definition()

    def validate_definition(self) -> None:
        if self.min_version > self.version:
            raise SchemaDefinitionError(
                f"{self.document}: min_version {self.min_version} is above version {self.version}"
            )
        shapes: dict[Any, MigrationRule] = {}
        previous = self.min_version
        for rule in self.rules:
            if rule.shape in shapes:
                raise MigrationRuleConflict(
                    f"{self.document}: rules '{shapes[rule.shape].name}' and "
                    f"'{rule.name}' detect the same shape"
                )
            shapes[rule.shape] = rule
            if not self.min_version < rule.version <= self.version:
                raise SchemaDefinitionError(
                    f"{self.document}: rule '{rule.name}' targets version {rule.version}, "
                    f"outside the retained range {self.min_version + 1}..{self.version}"
                )
            if rule.version < previous:
                raise SchemaDefinitionError(
                    f"{self.document}: rule '{rule.name}' is declared after a newer rule"
                )
            previous = rule.version

    def floor(self, window: int | None = None) -> int:
        """Oldest version accepted, given an optional generation window."""
        if window is None:
            return self.min_version
        return max(self.min_version, self.version - window)

    def migrate(
        self,
        data: Mapping[str, Any],
        *,
        target: int | None = None,
        window: int | None = None,
    ) -> dict[str, Any]:
        """
        Rewrite data up to the target version.

        If the data records a _version, rules at or below it are skipped
        and the version is checked against the retention floor. Otherwise
        every rule whose shape matches applies.

        Args:
            data: Raw source data (not modified)
            target: Version to migrate to (defaults to current)
            window: Only accept the last N generations

        Returns:
            A migrated copy, without the _version key

        Raises:
            MigrationError: Unsupported version, or a rule that did not
                consume its own legacy shape
        """
        target = self.version if target is None else target
        data = copy.deepcopy(dict(data))
        stored = data.pop(VERSION_KEY, None)

        if stored is not None:
            if isinstance(stored, bool) or not isinstance(stored, int):
                raise MigrationError(f"{VERSION_KEY} must be an integer, got {stored!r}", self.document)
            if stored > self.version:
                raise MigrationError(
                    f"data was written by schema version {stored}, newer than {self.version}",
                    self.document,
                )
            floor = self.floor(window)
            if stored < floor:
                raise MigrationError(
                    f"schema version {stored} is older than the oldest supported version {floor}",
                    self.document,
                )

        for rule in self.rules:
            if rule.version > target:
                break
            if stored is not None and rule.version <= stored:
                continue
            if not rule.matches(data):
                continue
            data = rule.apply(data)
            logger.debug("%s: applied migration '%s'", self.document, rule.name)
            if rule.matches(data):
                raise MigrationError(
                    f"migration '{rule.name}' did not consume the shape it detects",
                    self.document,
                )
        return data
