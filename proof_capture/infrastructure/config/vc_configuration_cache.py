"""
Adapter: VC Configuration Cache

Política de emissão por (doc_type, doc_subtype), carregada do backend
em uma única chamada e mantida em um CoalescingCache injetado.
Invalidada na troca de idioma ou por atualização administrativa.
"""

import json
import logging
import re

from proof_capture.core.entities.document import DocumentSubtypeConfig, VCField
from proof_capture.core.errors import ConfigMissingError
from proof_capture.core.interfaces.document_api import IConfigurationProvider, IDocumentApi
from proof_capture.infrastructure.cache.coalescing_cache import CoalescingCache

logger = logging.getLogger(__name__)

CATALOG_KEY = "vc-configurations"
METADATA_FIELD_PATTERNS = ("originalvc", "original")

Catalog = dict[tuple[str, str], DocumentSubtypeConfig]


def is_metadata_field(field_name: str) -> bool:
    lowered = field_name.lower()
    return any(pattern in lowered for pattern in METADATA_FIELD_PATTERNS)


def format_field_label(field_name: str) -> str:
    """Ex: studentUniqueId → Student Unique Id."""
    spaced = re.sub(r"([A-Z])", r" \1", field_name)
    return (spaced[:1].upper() + spaced[1:]).strip()


def parse_vc_fields(raw) -> dict[str, VCField]:
    """vcFields (texto JSON ou dict) → campos, sem os de metadado."""
    if isinstance(raw, str):
        raw = json.loads(raw) if raw.strip() else {}
    if not isinstance(raw, dict):
        raise ValueError("vcFields must be an object")

    fields: dict[str, VCField] = {}
    for name, definition in raw.items():
        field_type = definition.get("type", "string") if isinstance(definition, dict) else str(definition)
        if field_type == "object" and is_metadata_field(name):
            logger.debug("Skipping metadata field: %s", name)
            continue
        fields[name] = VCField(
            type=field_type,
            label=format_field_label(name),
            required=bool(definition.get("required", False)) if isinstance(definition, dict) else False,
        )
    return fields


def transform_api_config(item: dict) -> DocumentSubtypeConfig:
    """Formato da API (camelCase) → DocumentSubtypeConfig."""
    doc_type = item.get("docType") or ""
    doc_subtype = item.get("documentSubType") or item.get("docSubType") or ""
    if not doc_type or not doc_subtype:
        raise ValueError("docType and documentSubType are required")

    mime_types = item.get("allowedMimeTypes") or ()
    if isinstance(mime_types, str):
        mime_types = [m.strip() for m in mime_types.split(",") if m.strip()]
    max_size = item.get("maxFileSizeBytes")

    return DocumentSubtypeConfig(
        doc_type=doc_type,
        doc_subtype=doc_subtype,
        name=item.get("name") or "",
        label=item.get("label") or "",
        issuer=item.get("issuer") or None,
        issue_vc=str(item.get("issueVC", "")).strip().lower() == "yes",
        accepted_qr_content_kind=item.get("docQRContains") or None,
        max_file_size_bytes=int(max_size) if max_size else None,
        allowed_mime_types=tuple(mime_types),
        vc_fields=parse_vc_fields(item.get("vcFields") or {}),
        space_id=item.get("spaceId") or None,
    )


class VCConfigurationCache(IConfigurationProvider):
    """
    Dependency Injection: API e cache vêm pelo construtor; um mesmo
    cache pode ser compartilhado por várias telas.
    """

    def __init__(self, api: IDocumentApi, cache: CoalescingCache | None = None):
        self._api = api
        self._cache = cache if cache is not None else CoalescingCache(name="vc-config")

    @property
    def loaded(self) -> bool:
        return CATALOG_KEY in self._cache

    async def get(self, doc_type: str, doc_subtype: str) -> DocumentSubtypeConfig:
        config = (await self._catalog()).get((doc_type, doc_subtype))
        if config is None:
            raise ConfigMissingError(doc_type, doc_subtype)
        return config

    async def find(self, doc_type: str, doc_subtype: str) -> DocumentSubtypeConfig | None:
        """Como get(), mas None quando não há política."""
        return (await self._catalog()).get((doc_type, doc_subtype))

    async def get_all(self) -> list[DocumentSubtypeConfig]:
        return list((await self._catalog()).values())

    async def requires_vc_issuance(self, doc_type: str, doc_subtype: str) -> bool:
        config = await self.find(doc_type, doc_subtype)
        return bool(config and config.issue_vc)

    def invalidate(self) -> None:
        self._cache.invalidate()
        logger.info("VC configuration cache invalidated")

    def on_locale_change(self, locale: str) -> None:
        self._api.set_locale(locale)
        self.invalidate()

    # ─── Métodos internos ──────────────────────────────────

    async def _catalog(self) -> Catalog:
        return await self._cache.get(CATALOG_KEY, self._load)

    async def _load(self) -> Catalog:
        items = await self._api.fetch_vc_configurations()
        catalog: Catalog = {}
        for item in items:
            try:
                config = transform_api_config(item)
            except (ValueError, TypeError, AttributeError) as e:
                logger.warning("Skipping invalid VC configuration %r: %s", item, e)
                continue
            catalog[config.key] = config
        logger.info("Loaded %d VC configurations", len(catalog))
        return catalog
