"""
Contract: Document API

Backend de documentos do cidadão: upload (arquivo ou QR), lista,
exclusão e a configuração de emissão de VC. Todas as falhas
devem chegar como NetworkError.
"""

from abc import ABC, abstractmethod


class IDocumentApi(ABC):
    """
    Port: Document API

    Os métodos devolvem o JSON bruto do backend
    ({statusCode, message, data}); a interpretação fica no orquestrador.
    """

    @abstractmethod
    async def upload_document(
        self,
        data: bytes,
        filename: str,
        mime_type: str,
        fields: dict[str, str],
    ) -> dict:
        """
        Upload multipart do arquivo.

        Args:
            data: Conteúdo do arquivo.
            filename: Nome enviado no campo "file".
            mime_type: MIME type do arquivo.
            fields: docType, docSubtype, docName, importedFrom, issuer?.

        Returns:
            Resposta completa do backend.
        """
        ...

    @abstractmethod
    async def upload_document_qr(self, payload: dict) -> dict:
        """Upload JSON do conteúdo do QR."""
        ...

    @abstractmethod
    async def list_documents(self) -> list[dict]:
        """Lista autoritativa dos documentos do usuário."""
        ...

    @abstractmethod
    async def delete_document(self, doc_id: str) -> dict:
        """Exclui por doc_id."""
        ...

    @abstractmethod
    async def fetch_vc_configurations(self) -> list[dict]:
        """Todas as configurações de VC (formato da API, camelCase)."""
        ...

    def set_locale(self, locale: str) -> None:
        """Idioma enviado nas próximas requisições (opcional)."""
        return None


class IConfigurationProvider(ABC):
    """Port: política de emissão por (doc_type, doc_subtype)."""

    @abstractmethod
    async def get(self, doc_type: str, doc_subtype: str):
        """
        Returns:
            DocumentSubtypeConfig.

        Raises:
            ConfigMissingError: se não há política para a chave.
            NetworkError: se a busca falhou.
        """
        ...

    @abstractmethod
    def invalidate(self) -> None:
        ...
