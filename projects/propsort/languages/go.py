from .._parser.go import GoParser
from .._reconstructor.go import GoReconstructor
from ..grammar import TheGrammar
from ..model import FileType


class StructGrammar(TheGrammar):
    def name(self) -> str:
        return 'struct'

    def file_types(self) -> list[FileType]:
        return [FileType.GO]

    def _new_parser(self) -> GoParser:
        return GoParser()

    def _new_reconstructor(self) -> GoReconstructor:
        return GoReconstructor()
