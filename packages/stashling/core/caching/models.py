"""Models for the stash engine.

Provides fingerprint, stored record, and per-call option models.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

CODE_COMPONENT = "CODE"


class FingerprintComponent(BaseModel):
    """One named digest inside a fingerprint."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Component name ('CODE' or a dependency name)")
    digest: str = Field(description="SHA256 hex digest of the component")


class Fingerprint(BaseModel):
    """
    Ordered digest summary of a computation and its dependencies.

    The first component is always ``CODE``; dependency components follow
    in lexicographic order of their names. Two fingerprints are equivalent
    only when both the name sequence and every digest match.
    """

    model_config = ConfigDict(frozen=True)

    components: tuple[FingerprintComponent, ...] = Field(
        description="CODE digest followed by sorted dependency digests"
    )

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.components)

    @property
    def dependency_names(self) -> tuple[str, ...]:
        return self.names[1:]

    @property
    def code_digest(self) -> str:
        return self.components[0].digest

    def is_equivalent(self, other: Fingerprint) -> bool:
        """Structural equality: same names in the same order, same digests."""
        return self.components == other.components

    def changed_components(self, other: Fingerprint) -> list[str]:
        """
        Names of components that differ between two fingerprints.

        Components present in only one of the two are reported as changed.
        Used for diagnostics only; equivalence is decided by is_equivalent().
        """
        mine = {c.name: c.digest for c in self.components}
        theirs = {c.name: c.digest for c in other.components}
        names = list(dict.fromkeys([*self.names, *other.names]))
        return [n for n in names if mine.get(n) != theirs.get(n)]


class StashRecord(BaseModel):
    """
    Contents of a fingerprint artifact.

    Written before the value artifact; its presence alone does not
    make an entry complete.
    """

    key: str
    fingerprint: Fingerprint
    created_at: float = Field(description="Unix timestamp (seconds)")
    compute_ms: float | None = Field(
        default=None, description="Computation duration in milliseconds"
    )
    value_bytes: int | None = Field(default=None, description="Pickled value size in bytes")


class StashOptions(BaseModel):
    """
    Per-call stash behavior.

    ``None`` for functional/verbose means "use the process-wide default".
    """

    depends_on: list[str] | None = Field(
        default=None, description="Names of scope values the computation depends on"
    )
    functional: bool | None = Field(
        default=None,
        description="Return the value instead of binding it into the scope",
    )
    verbose: bool | None = Field(default=None, description="Print status messages")
    force: bool = Field(
        default=False,
        description="Ignore a matching stash and recompute (still stores)",
    )


class StashEntryInfo(BaseModel):
    """Summary of one stored entry, used for listing."""

    key: str
    complete: bool = Field(description="Both fingerprint and value artifacts are present")
    record: StashRecord | None = Field(
        default=None, description="Parsed fingerprint artifact (None if unreadable)"
    )
