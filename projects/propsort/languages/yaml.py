from .._parser.yaml import YamlParser
from .._reconstructor.yaml import YamlReconstructor
from ..comments import HASH_STYLE, CommentSyntax
from ..grammar import TheGrammar
from ..model import FileType


class YamlGrammar(TheGrammar):
    def name(self) -> str:
        return 'yaml'

    def file_types(self) -> list[FileType]:
        return [FileType.YAML, FileType.YML]

    def comment_syntax(self, file_type: FileType | None = None) -> CommentSyntax:
        return HASH_STYLE

    def _new_parser(self) -> YamlParser:
        return YamlParser()

    def _new_reconstructor(self) -> YamlReconstructor:
        return YamlReconstructor()
