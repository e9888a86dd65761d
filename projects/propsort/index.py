from abc import ABC, abstractmethod
from typing import Any, Mapping

from .comments import CommentSyntax
from .model import Entity, FileType, ParseResult, ProcessingResult
from .options import ProcessingOptions


# Public interface of one grammar: parse -> sort -> reconstruct.
# Implementations are stateless; options are passed with every call.
class Grammar(ABC):
    @abstractmethod
    def name(self) -> str:
        # Grammar key such as 'declaration' or 'yaml'.
        pass

    @abstractmethod
    def file_types(self) -> list[FileType]:
        # File types handled by this grammar; the first one is the default.
        pass

    @abstractmethod
    def extensions(self) -> list[str]:
        # Supported file extensions with the leading dot.
        pass

    @abstractmethod
    def parse(self, source: str, options: ProcessingOptions, file_type: FileType | None = None) -> ParseResult:
        # Never raises for malformed input; problems are reported in ParseResult.errors.
        pass

    @abstractmethod
    def sort(self, entity: Entity, options: ProcessingOptions) -> Entity:
        # Returns a sorted copy; the input entity is left untouched.
        pass

    @abstractmethod
    def reconstruct(self, entity: Entity, options: ProcessingOptions, file_type: FileType | None = None) -> str:
        # Text of the entity with its leading comments; the first line carries no indentation.
        # Raises ReconstructError when the entity cannot be rendered.
        pass

    @abstractmethod
    def comment_syntax(self, file_type: FileType | None = None) -> CommentSyntax:
        pass

    # Use function-scoped imports to avoid circular dependencies.
    @staticmethod
    def grammars() -> dict[str, "Grammar"]:
        from .grammar import TheGrammar
        return TheGrammar.grammars()

    @staticmethod
    def ext2grammar() -> dict[str, "Grammar"]:
        from .grammar import TheGrammar
        return TheGrammar.ext2grammar()

    @staticmethod
    def create(name: str) -> "Grammar":
        from .grammar import TheGrammar
        return TheGrammar.create(name)

    @staticmethod
    def create_by_file_type(file_type: "FileType | str | None") -> "Grammar":
        from .grammar import TheGrammar
        return TheGrammar.create_by_file_type(file_type)

    @staticmethod
    def create_by_filename(fn: str) -> "Grammar":
        from .grammar import TheGrammar
        return TheGrammar.create_by_filename(fn)


# Orchestrator: one call sorts every entity of a document and splices the result back.
class Processor(ABC):
    @abstractmethod
    def process_text(self, source_text: str, file_type: "FileType | str | None" = None,
                     options: "ProcessingOptions | Mapping[str, Any] | None" = None) -> ProcessingResult:
        # Never raises; every failure is reported through ProcessingResult.
        pass

    @staticmethod
    def create() -> "Processor":
        from .processor import TheProcessor
        return TheProcessor()
