"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           pageflux/codec.py
Version:        1.0.0
Description:    Document codec boundary. Defines the narrow interface the
                engine needs from a PDF library and implements it on top of
                pikepdf (QPDF).
------------------------------------------------------------------------------
"""

import io
from typing import Any, Dict, List, Optional, Protocol, Sequence

import pikepdf

from pageflux.exceptions import DecodeError
from pageflux.logger import get_logger
from pageflux.models.options import OutputOptions

logger = get_logger("codec")


class DocumentCodec(Protocol):
    """Operations the engine consumes from a document codec."""

    def load_document(self, data: bytes) -> Any: ...

    def page_count_of(self, handle: Any) -> int: ...

    def create_empty_document(self) -> Any: ...

    def copy_pages(self, dest: Any, src: Any, indices: Sequence[int]) -> List[Any]: ...

    def append_page(self, dest: Any, page: Any) -> None: ...

    def set_document_properties(self, handle: Any, properties: Dict[str, Any]) -> None: ...

    def serialize(self, handle: Any, protection: Optional[OutputOptions] = None) -> bytes: ...

    def close_document(self, handle: Any) -> None: ...


class PikePdfCodec:
    """
    DocumentCodec implementation using pikepdf.
    Encrypted sources that open with an empty user password are accepted.
    """

    _DOCINFO_KEYS = {
        "title": "/Title",
        "author": "/Author",
        "subject": "/Subject",
        "keywords": "/Keywords",
    }

    def load_document(self, data: bytes) -> pikepdf.Pdf:
        """
        Parses PDF bytes.

        Raises:
            DecodeError: If the bytes are not a readable PDF.
        """
        try:
            return pikepdf.Pdf.open(io.BytesIO(data))
        except pikepdf.PasswordError as e:
            raise DecodeError(f"PDF is password protected: {e}") from e
        except (pikepdf.PdfError, ValueError, OSError) as e:
            raise DecodeError(f"Not a readable PDF: {e}") from e

    def page_count_of(self, handle: pikepdf.Pdf) -> int:
        return len(handle.pages)

    def create_empty_document(self) -> pikepdf.Pdf:
        return pikepdf.Pdf.new()

    def copy_pages(self, dest: pikepdf.Pdf, src: pikepdf.Pdf, indices: Sequence[int]) -> List[pikepdf.Page]:
        """
        Resolves the requested source pages in the given order.
        QPDF performs the foreign-object copy into `dest` on append.
        """
        count = len(src.pages)
        pages = []
        for idx in indices:
            if not 0 <= idx < count:
                raise IndexError(f"page index {idx} out of range (0..{count - 1})")
            pages.append(src.pages[idx])
        return pages

    def append_page(self, dest: pikepdf.Pdf, page: pikepdf.Page) -> None:
        dest.pages.append(page)

    def set_document_properties(self, handle: pikepdf.Pdf, properties: Dict[str, Any]) -> None:
        for key, value in properties.items():
            pdf_key = self._DOCINFO_KEYS.get(key)
            if pdf_key is None or not value:
                continue
            if isinstance(value, (list, tuple)):
                value = ", ".join(str(v) for v in value)
            handle.docinfo[pdf_key] = pikepdf.String(str(value))

    def serialize(self, handle: pikepdf.Pdf, protection: Optional[OutputOptions] = None) -> bytes:
        """
        Writes the document to bytes, encrypting it when `protection`
        carries a user or owner password.
        """
        kwargs: Dict[str, Any] = {}
        if protection is not None and protection.has_encryption:
            kwargs["encryption"] = pikepdf.Encryption(
                user=protection.user_password,
                owner=protection.effective_owner_password(),
                allow=pikepdf.Permissions(
                    print_lowres=protection.allow_print,
                    print_highres=protection.allow_print,
                    extract=protection.allow_copy,
                ),
            )
            logger.debug("Serializing with encryption (print=%s, copy=%s)",
                         protection.allow_print, protection.allow_copy)

        buffer = io.BytesIO()
        handle.save(buffer, **kwargs)
        return buffer.getvalue()

    def close_document(self, handle: pikepdf.Pdf) -> None:
        handle.close()
