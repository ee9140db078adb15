"""Request-scoped context passed explicitly into repositories and services."""

from dataclasses import dataclass, field

from .config import settings
from .short_id import ShortIdCodec


def _default_codec() -> ShortIdCodec:
    return ShortIdCodec(salt=settings.SHORT_ID_SALT)


@dataclass(frozen=True)
class RequestContext:
    """
    Per-request presentation settings.

    Object ids supplied by the caller are always decoded to canonical form;
    ids handed back are encoded to short form only when ``short_id_enabled``.
    """

    short_id_enabled: bool = False
    codec: ShortIdCodec = field(default_factory=_default_codec)

    def to_canonical(self, object_id: str) -> str:
        return self.codec.decode(object_id)

    def present(self, object_id: str) -> str:
        if self.short_id_enabled:
            return self.codec.encode(object_id)
        return object_id
