"""Document loading and text chunking for ingestion."""

from pathlib import Path

import pypdf

from .config import config
from .models import DocumentChunk

logger = config.get_logger(__name__)


class DocumentLoader:
    """Handles loading of PDF and TXT documents."""

    @staticmethod
    def load_pdf(file_path: Path) -> str:
        """Load text content from a PDF file.

        Returns:
            The extracted text of every page, in page order.
        """
        try:
            with file_path.open("rb") as file:
                pdf_reader = pypdf.PdfReader(file)
                pages = [page.extract_text() or "" for page in pdf_reader.pages]
        except Exception:
            logger.exception("Error loading PDF %s", file_path)
            raise
        logger.info("Loaded %d pages from %s", len(pages), file_path.name)
        return "\n".join(pages)

    @staticmethod
    def load_txt(file_path: Path) -> str:
        """Load text content from a TXT file.

        Returns:
            The content of the file.
        """
        try:
            text = file_path.read_text(encoding="utf-8")
        except Exception:
            logger.exception("Error loading TXT %s", file_path)
            raise
        logger.info("Loaded %d characters from %s", len(text), file_path.name)
        return text

    @classmethod
    def load_document(cls, file_path: Path) -> str:
        """Load document based on file extension.

        Raises:
            ValueError: If the file type is not supported.
        """
        file_ext = file_path.suffix.lower()
        if file_ext == ".pdf":
            return cls.load_pdf(file_path)
        if file_ext in {".txt", ".md"}:
            return cls.load_txt(file_path)
        msg = f"Unsupported file type: {file_ext}"
        raise ValueError(msg)


class TextChunker:
    """Splits text into fixed-size overlapping chunks."""

    def __init__(
        self, chunk_size: int | None = None, overlap: int | None = None
    ) -> None:
        """Initialize the TextChunker with chunk size and overlap.

        Args:
            chunk_size: Maximum characters per chunk. Defaults to config.CHUNK_SIZE.
            overlap: Characters shared by consecutive chunks. Defaults to
                config.CHUNK_OVERLAP.

        Raises:
            ValueError: If the sizes cannot make progress through the text.
        """
        self.chunk_size = config.CHUNK_SIZE if chunk_size is None else chunk_size
        self.overlap = config.CHUNK_OVERLAP if overlap is None else overlap
        if self.chunk_size <= 0:
            msg = f"chunk_size must be positive, got {self.chunk_size}"
            raise ValueError(msg)
        if not 0 <= self.overlap < self.chunk_size:
            msg = (
                f"overlap must be in [0, chunk_size), got {self.overlap} "
                f"for chunk_size {self.chunk_size}"
            )
            raise ValueError(msg)

    def chunk_text(self, text: str, source: str = "document") -> list[DocumentChunk]:
        """Split text into overlapping chunks.

        Chunk ends are pulled back to the last space when one exists in the
        second half of the window, so words are not cut in two.

        Returns:
            The non-blank chunks, in document order.
        """
        chunks: list[DocumentChunk] = []
        start = 0

        while start < len(text):
            end = min(start + self.chunk_size, len(text))
            if end < len(text):
                last_space = text.rfind(" ", start, end)
                if last_space > start + self.chunk_size // 2:
                    end = last_space

            content = text[start:end].strip()
            if content:
                chunks.append(
                    DocumentChunk(
                        content=content,
                        metadata={
                            "source": source,
                            "chunk_id": len(chunks),
                            "start_char": start,
                            "end_char": end,
                            "length": len(content),
                        },
                    )
                )

            if end >= len(text):
                break
            start = max(end - self.overlap, start + 1)

        logger.info("Text split into %d chunks", len(chunks))
        return chunks
