from .._parser.typescript import TypescriptParser
from .._reconstructor.typescript import TypescriptReconstructor
from ..grammar import TheGrammar
from ..model import FileType


class DeclarationGrammar(TheGrammar):
    def name(self) -> str:
        return 'declaration'

    def file_types(self) -> list[FileType]:
        return [FileType.TYPESCRIPT, FileType.JAVASCRIPT]

    def _new_parser(self) -> TypescriptParser:
        return TypescriptParser()

    def _new_reconstructor(self) -> TypescriptReconstructor:
        return TypescriptReconstructor()
