import os
from typing import Any

from .comments import C_STYLE, CommentSyntax
from .index import Grammar
from .model import EXTENSIONS, Entity, FileType, ParseResult
from .options import ProcessingOptions
from .sorters import sort_entity, spec_for


# Internal base for the grammar variants in languages/, not part of the public API.
# Subclasses name the grammar and pick their front end and reconstructor; everything else is shared.
class TheGrammar(Grammar):
    def __init__(self):
        self._parser = self._new_parser()
        self._reconstructor = self._new_reconstructor()

    def _new_parser(self) -> Any:
        raise NotImplementedError

    def _new_reconstructor(self) -> Any:
        raise NotImplementedError

    def extensions(self) -> list[str]:
        types = self.file_types()
        return [ext for ext, file_type in EXTENSIONS.items() if file_type in types]

    def parse(self, source: str, options: ProcessingOptions, file_type: FileType | None = None) -> ParseResult:
        return self._parser.parse(source, options, file_type or self.file_types()[0])

    def sort(self, entity: Entity, options: ProcessingOptions) -> Entity:
        return sort_entity(entity, spec_for(self.name(), options))

    def reconstruct(self, entity: Entity, options: ProcessingOptions, file_type: FileType | None = None) -> str:
        return self._reconstructor.reconstruct(entity, options)

    def comment_syntax(self, file_type: FileType | None = None) -> CommentSyntax:
        return C_STYLE

    @staticmethod
    def grammars() -> dict[str, Grammar]:
        # Dynamically import all supported grammar classes to avoid circular imports
        from .languages.typescript import DeclarationGrammar
        from .languages.css import StylesheetGrammar
        from .languages.go import StructGrammar
        from .languages.json import JsonGrammar
        from .languages.yaml import YamlGrammar

        grammar_classes = [
            DeclarationGrammar,
            StylesheetGrammar,
            StructGrammar,
            JsonGrammar,
            YamlGrammar,
        ]

        factory: dict[str, Grammar] = {}
        for grammar_class in grammar_classes:
            try:
                grammar = grammar_class()
            except Exception as e:  # Should not occur; each subclass must be constructible without arguments
                raise ValueError(f"Failed to initialize grammar {grammar_class.__name__}") from e
            name = grammar.name()
            if name in factory:  # Should not occur; each subclass owns a unique name
                raise ValueError(f"Grammar {name} is shared by multiple classes: {grammar_class.__name__}")
            factory[name] = grammar

        return factory

    @staticmethod
    def type2grammar() -> dict[FileType, Grammar]:
        map: dict[FileType, Grammar] = {}
        for grammar in TheGrammar.grammars().values():
            for file_type in grammar.file_types():
                if file_type in map:  # Should not occur; file types are partitioned between grammars
                    raise ValueError(f"File type {file_type.value} is shared by {map[file_type].name()} and {grammar.name()}")
                map[file_type] = grammar
        return map

    @staticmethod
    def ext2grammar() -> dict[str, Grammar]:
        # Build mapping from file extensions to grammars
        map: dict[str, Grammar] = {}
        for grammar in TheGrammar.grammars().values():
            for ext in grammar.extensions():
                ext = ext.lower()
                if ext in map:
                    raise ValueError(f"Extension {ext} is shared by {map[ext].name()} and {grammar.name()}")
                map[ext] = grammar
        return map

    @staticmethod
    def create(name: str) -> Grammar:
        # Grammars are cheap to build and hold no state, so every call builds a fresh set
        grammars = TheGrammar.grammars()
        if name not in grammars:
            raise ValueError(f"Grammar {name} not supported")
        return grammars[name]

    @staticmethod
    def create_by_file_type(file_type: "FileType | str | None") -> Grammar:
        return TheGrammar.type2grammar()[FileType.parse(file_type)]

    @staticmethod
    def create_by_filename(fn: str) -> Grammar:
        ext2grammar = TheGrammar.ext2grammar()
        # "foo.d.ts" resolves through its last extension ".ts"
        _, ext = os.path.splitext(fn)
        ext = ext.lower()
        if ext not in ext2grammar:
            raise ValueError(f"Extension {ext} not supported for {fn}")
        return ext2grammar[ext]
