from .._parser.json import JsonParser
from .._reconstructor.json import JsonReconstructor
from ..grammar import TheGrammar
from ..model import FileType


class JsonGrammar(TheGrammar):
    def name(self) -> str:
        return 'json'

    def file_types(self) -> list[FileType]:
        # Comments and trailing commas are accepted in both
        return [FileType.JSON, FileType.JSONC]

    def _new_parser(self) -> JsonParser:
        return JsonParser()

    def _new_reconstructor(self) -> JsonReconstructor:
        return JsonReconstructor()
