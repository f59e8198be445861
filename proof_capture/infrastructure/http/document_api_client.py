"""
Adapter: Document API Client (httpx)

Cliente assíncrono do backend de documentos:
  - POST   /users/upload-document          (multipart)
  - POST   /users/upload-document-qr       (JSON)
  - GET    /users/get_one/?decryptData=true → data.docs
  - DELETE /users/delete-doc/{doc_id}
  - GET    /admin/config/vcConfiguration    → data.value

Toda falha (HTTP ou transporte) vira NetworkError com as
mensagens do servidor já normalizadas.
"""

import logging

import httpx

from proof_capture.core.errors import NetworkError
from proof_capture.core.interfaces.document_api import IDocumentApi

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/users/upload-document"
UPLOAD_QR_PATH = "/users/upload-document-qr"
LIST_PATH = "/users/get_one/"
DELETE_PATH = "/users/delete-doc/{doc_id}"
VC_CONFIG_PATH = "/admin/config/vcConfiguration"


def accept_language(locale: str | None) -> str:
    """en / hi passam direto; o resto cai em en-US."""
    code = (locale or "").split("-")[0].lower()
    return code if code in ("en", "hi") else "en-US"


def extract_error_messages(body) -> list[str]:
    """
    Ordem de preferência:
      1. errors[] (item.error, item.message ou o próprio texto)
      2. message (lista ou texto)
      3. error_description
      4. error
    """
    if not isinstance(body, dict):
        return []

    errors = body.get("errors")
    if isinstance(errors, list) and errors:
        messages = []
        for item in errors:
            if isinstance(item, str):
                messages.append(item)
            elif isinstance(item, dict):
                text = item.get("error") or item.get("message")
                if text:
                    messages.append(str(text))
        if messages:
            return messages

    message = body.get("message")
    if isinstance(message, list):
        items = [str(m) for m in message if m]
        if items:
            return items
    elif isinstance(message, str) and message:
        return [message]

    for key in ("error_description", "error"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return [value]

    return []


class DocumentApiClient(IDocumentApi):
    """
    Uso:
        async with DocumentApiClient(base_url, token=...) as api:
            docs = await api.list_documents()

    Um httpx.AsyncClient compartilhado; transport injetável para testes.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        locale: str = "en",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._token = token or None
        self._locale = locale
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "DocumentApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def set_locale(self, locale: str) -> None:
        self._locale = locale

    # ─── Endpoints ───────────────────────────────────────

    async def upload_document(
        self,
        data: bytes,
        filename: str,
        mime_type: str,
        fields: dict[str, str],
    ) -> dict:
        files = {"file": (filename, data, mime_type)}
        return await self._request("POST", UPLOAD_PATH, data=fields, files=files)

    async def upload_document_qr(self, payload: dict) -> dict:
        return await self._request("POST", UPLOAD_QR_PATH, json=payload)

    async def list_documents(self) -> list[dict]:
        body = await self._request("GET", LIST_PATH, params={"decryptData": "true"})
        data = body.get("data") or {}
        docs = data.get("docs") if isinstance(data, dict) else None
        return docs if isinstance(docs, list) else []

    async def delete_document(self, doc_id: str) -> dict:
        return await self._request("DELETE", DELETE_PATH.format(doc_id=doc_id))

    async def fetch_vc_configurations(self) -> list[dict]:
        body = await self._request("GET", VC_CONFIG_PATH)
        data = body.get("data") or {}
        value = data.get("value") if isinstance(data, dict) else None
        return value if isinstance(value, list) else []

    # ─── Métodos internos ──────────────────────────────────

    def _headers(self) -> dict[str, str]:
        headers = {"Accept-Language": accept_language(self._locale)}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = await self._client.request(method, path, headers=self._headers(), **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            messages = extract_error_messages(_json_or_none(e.response))
            logger.error("%s %s failed with %d: %s", method, path, status, messages or "no message")
            raise NetworkError(messages, status_code=status) from e
        except httpx.RequestError as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise NetworkError() from e

        body = _json_or_none(response)
        return body if isinstance(body, dict) else {}


def _json_or_none(response: httpx.Response):
    try:
        return response.json()
    except ValueError:
        return None
