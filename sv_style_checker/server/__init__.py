"""
LSP server implementation for the (System)Verilog style checker.

The server only publishes diagnostics: documents are linted when opened, changed
or saved, and their diagnostics are cleared when closed.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from pygls.server import LanguageServer
from lsprotocol.types import (
    INITIALIZE,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_DID_SAVE,
    Diagnostic as LspDiagnostic,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    DidSaveTextDocumentParams,
    InitializeParams,
    TextDocumentSyncKind,
)

from .. import __version__
from ..config import Config
from ..analysis import FileAnalysis
from ..lint import LintEngine
from ..lsp_data import (
    LSPInitializationOptions,
    to_lsp_diagnostics,
    uri_to_path,
)

logger = logging.getLogger(__name__)


class SVStyleServer(LanguageServer):
    """Language server publishing style diagnostics for (System)Verilog documents."""

    def __init__(self):
        super().__init__("sv-style-checker", __version__,
                         text_document_sync_kind=TextDocumentSyncKind.Full)

        self.config = Config()
        self.lint_engine = LintEngine(self.config)

        # Track open documents
        self.open_documents: Dict[str, str] = {}

        # Register LSP handlers
        self._register_handlers()

    def _register_handlers(self) -> None:
        """Register LSP message handlers."""

        @self.feature(INITIALIZE)
        def initialize(params: InitializeParams) -> None:
            """Handle initialize request."""
            logger.info("Initializing style checker server")

            # Set workspace root
            if params.root_uri:
                try:
                    self.config.workspace_root = uri_to_path(params.root_uri)
                except ValueError as e:
                    logger.warning(f"Ignoring workspace root: {e}")

            self.configure(params.initialization_options)

        @self.feature(TEXT_DOCUMENT_DID_OPEN)
        async def did_open(params: DidOpenTextDocumentParams) -> None:
            """Handle document open."""
            uri = params.text_document.uri
            self.open_documents[uri] = params.text_document.text
            self._publish(uri)

        @self.feature(TEXT_DOCUMENT_DID_CHANGE)
        async def did_change(params: DidChangeTextDocumentParams) -> None:
            """Handle document change."""
            uri = params.text_document.uri

            # Full sync: the last change carries the whole document
            if params.content_changes:
                self.open_documents[uri] = params.content_changes[-1].text
                self._publish(uri)

        @self.feature(TEXT_DOCUMENT_DID_SAVE)
        async def did_save(params: DidSaveTextDocumentParams) -> None:
            """Handle document save."""
            uri = params.text_document.uri
            if params.text is not None:
                self.open_documents[uri] = params.text
            if uri in self.open_documents:
                self._publish(uri)

        @self.feature(TEXT_DOCUMENT_DID_CLOSE)
        async def did_close(params: DidCloseTextDocumentParams) -> None:
            """Handle document close."""
            uri = params.text_document.uri
            self.open_documents.pop(uri, None)
            self.publish_diagnostics(uri, [])

    def configure(self, initialization_options: Optional[dict]) -> None:
        """Apply client initialization options and rebuild the lint engine."""
        if initialization_options:
            options = LSPInitializationOptions.from_dict(initialization_options)
            try:
                self.config.set_initialization_options(options.__dict__)
            except (OSError, ValueError) as e:
                logger.error(f"Could not apply initialization options: {e}")
        self.lint_engine = LintEngine(self.config)

    def lint_document(self, uri: str, content: str) -> List[LspDiagnostic]:
        """
        Lint one document.

        Args:
            uri: Document URI
            content: Full document text

        Returns:
            LSP diagnostics, truncated to the configured per-file maximum
        """
        try:
            file_path: Optional[Path] = uri_to_path(uri)
        except ValueError:
            # Untitled buffers and other schemes are still linted
            file_path = None

        best_effort = self.config.is_best_effort()
        if self.config.is_linting_enabled():
            diagnostics = self.lint_engine.lint_file(file_path, content, best_effort)
        else:
            diagnostics = FileAnalysis(file_path, content, best_effort).get_diagnostics()

        return to_lsp_diagnostics(diagnostics, self.config.get_max_diagnostics_per_file())

    def _publish(self, uri: str) -> None:
        """Analyze a document and publish diagnostics."""
        try:
            diagnostics = self.lint_document(uri, self.open_documents[uri])
        except Exception as e:
            logger.error(f"Error analyzing document {uri}: {e}", exc_info=True)
            return
        self.publish_diagnostics(uri, diagnostics)


def run_server() -> int:
    """
    Run the style checker language server on stdio.

    Returns:
        Exit code
    """
    try:
        server = SVStyleServer()
        server.start_io()
        return 0
    except Exception as e:
        logger.error(f"Server error: {e}")
        return 1


# Export main functions
__all__ = [
    "SVStyleServer",
    "run_server",
]
