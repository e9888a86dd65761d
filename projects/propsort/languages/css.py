from .._parser.css import CssParser, stylesheet_syntax
from .._reconstructor.css import CssReconstructor
from ..comments import CommentSyntax
from ..grammar import TheGrammar
from ..model import Entity, FileType
from ..options import ProcessingOptions
from ..sorters import is_keyframes, keyframes_spec, sort_entity, stylesheet_spec


class StylesheetGrammar(TheGrammar):
    def name(self) -> str:
        return 'stylesheet'

    def file_types(self) -> list[FileType]:
        return [FileType.CSS, FileType.SCSS, FileType.LESS, FileType.SASS]

    def sort(self, entity: Entity, options: ProcessingOptions) -> Entity:
        entity = sort_entity(entity, stylesheet_spec(options))
        # Keyframe stops follow their offsets, not their names
        if options.sort_keyframes and is_keyframes(entity.name):
            entity = sort_entity(entity, keyframes_spec())
        return entity

    def reconstruct(self, entity: Entity, options: ProcessingOptions, file_type: FileType | None = None) -> str:
        return self._reconstructor.reconstruct(entity, options, file_type or FileType.CSS)

    def comment_syntax(self, file_type: FileType | None = None) -> CommentSyntax:
        return stylesheet_syntax(file_type or FileType.CSS)

    def _new_parser(self) -> CssParser:
        return CssParser()

    def _new_reconstructor(self) -> CssReconstructor:
        return CssReconstructor()
