from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from .index import Grammar, Processor
from .model import Entity, EntityKind, FileType, ParseResult, ProcessingResult, ReconstructError
from .options import ProcessingOptions, Resolver, detect_line_ending

logger = logging.getLogger(__name__)

NOTHING_SORTABLE = 'No sortable entities found (interfaces, objects, or type aliases)'
ALREADY_SORTED = 'Properties are already sorted in the specified order'

# Grammar specific messages when a document holds nothing to sort
_NO_ENTITIES = {
    'json': 'No sortable JSON value found',
    'yaml': 'No sortable YAML document found',
}
_NO_PROPERTIES = {
    'struct': 'No properties found to sort, but entities were processed',
    'json': 'No properties found to sort, but JSON entities were processed',
    'yaml': 'No properties found to sort, but YAML documents were processed',
}


@dataclass(frozen=True)
class _Edit:
    # Replace lines [first_line, end_line] (1-based) of the current text
    first_line: int
    end_line: int
    start_column: int
    text: str | None  # reconstructed entity, or None to insert `note` above the entity
    note: str = ''
    prefix: str | None = None  # fixed text before the entity on its first line
    end_column: int = 0


class TheProcessor(Processor):
    def __init__(self, resolver: Resolver | None = None):
        # Without a resolver, indentation and line endings are detected per entity
        self.resolver = resolver

    def process_text(self, source_text: str, file_type: "FileType | str | None" = None,
                     options: "ProcessingOptions | Mapping[str, Any] | None" = None) -> ProcessingResult:
        try:
            if not isinstance(options, ProcessingOptions):
                options = ProcessingOptions.from_mapping(options)
            file_type = FileType.parse(file_type)
            grammar = Grammar.create_by_file_type(file_type)
            logger.debug("processing %s text with the %s grammar", file_type.value, grammar.name())
            newline = options.newline or detect_line_ending(source_text)
            text = source_text.replace('\r\n', '\n')
            options = options.resolve(text, self.resolver).for_file_type(file_type)
            return self._process(source_text, text, newline, file_type, grammar, options)
        except Exception as e:
            logger.debug("processing failed", exc_info=True)
            return ProcessingResult(success=False, errors=[f"Processing failed: {e}"])

    def _process(self, source_text: str, text: str, newline: str, file_type: FileType, grammar: Grammar,
                 options: ProcessingOptions) -> ProcessingResult:
        parsed = grammar.parse(text, options, file_type)
        if parsed.errors:
            return ProcessingResult(success=False, errors=list(parsed.errors))

        name = grammar.name()
        entities = parsed.entities
        if not entities:
            if name == 'stylesheet':
                return ProcessingResult(success=True, warnings=['No CSS rules found to sort'], processed_text=source_text)
            return ProcessingResult(success=False, errors=[_NO_ENTITIES.get(name, NOTHING_SORTABLE)])
        if not any(entity.properties for entity in entities):
            if name in _NO_PROPERTIES:
                return ProcessingResult(success=True, entities_processed=len(entities),
                                        warnings=[_NO_PROPERTIES[name]], processed_text=source_text)
            return ProcessingResult(success=False, errors=[NOTHING_SORTABLE])

        sorted_entities = [grammar.sort(entity, options) for entity in entities]
        changed = [(old, new) for old, new in zip(entities, sorted_entities) if has_changes(old, new)]
        logger.debug("%d of %d entities change order", len(changed), len(entities))
        if not changed:
            return ProcessingResult(success=True, entities_processed=len(sorted_entities),
                                    warnings=[ALREADY_SORTED], processed_text=source_text)

        warnings: list[str] = []
        edits: list[_Edit] = []
        for original, entity in changed:
            try:
                rendered = grammar.reconstruct(entity, options, file_type)
            except ReconstructError as e:
                # A single entity has nothing else worth saving
                if len(entities) == 1:
                    raise
                logger.debug("keeping %s unsorted: %s", original.name, e)
                warnings.append(f"Could not sort {original.name}: {e}")
                edits.append(_diagnostic(original, grammar, file_type, str(e)))
                continue
            edits.append(_replacement(original, rendered))

        output = splice(parsed, edits)
        if file_type in (FileType.YAML, FileType.YML) and not options.preserve_document_separators:
            output = drop_leading_separator(output)
        if newline != '\n':
            output = output.replace('\n', newline)
        return ProcessingResult(success=True, entities_processed=len(sorted_entities), warnings=warnings,
                                processed_text=output)


def has_changes(original: Entity, sorted_entity: Entity) -> bool:
    # Arrays are always rewritten so that formatting options reach them
    if original.kind == EntityKind.JSON_ARRAY:
        return True
    return original.signature() != sorted_entity.signature()


def _replacement(entity: Entity, text: str) -> _Edit:
    prefix = None
    if entity.leading_comments:
        prefix = entity.leading_comments[0].indent
    return _Edit(entity.first_line, entity.end_line, entity.start_column, text, prefix=prefix,
                 end_column=entity.end_column)


def _diagnostic(entity: Entity, grammar: Grammar, file_type: FileType, message: str) -> _Edit:
    syntax = grammar.comment_syntax(file_type)
    note = f"propsort: could not sort {entity.name}: {message}".replace('\n', ' ')
    if syntax.line:
        comment = syntax.line_comment(note)
    else:
        comment = syntax.block_comment(note.replace(syntax.block_close, ''))
    return _Edit(entity.first_line, entity.first_line, entity.start_column, None, note=comment or '')


def splice(parsed: ParseResult, edits: list[_Edit]) -> str:
    # Edits go bottom-up and right to left on a shared line; notes are inserted after replacements on their line
    lines = tuple(parsed.source_code.split('\n'))
    order = sorted(edits, key=lambda e: (e.first_line, e.text is not None, e.start_column), reverse=True)
    for edit in order:
        first = lines[edit.first_line - 1]
        if edit.text is None:
            indent = first[:len(first) - len(first.lstrip())]
            lines = lines[:edit.first_line - 1] + (indent + edit.note,) + lines[edit.first_line - 1:]
            continue
        prefix = edit.prefix if edit.prefix is not None else first[:edit.start_column]
        suffix = lines[edit.end_line - 1][edit.end_column:]
        replaced = (prefix + edit.text + suffix).split('\n')
        lines = lines[:edit.first_line - 1] + tuple(replaced) + lines[edit.end_line:]
    return '\n'.join(lines)


def drop_leading_separator(text: str) -> str:
    lines = text.split('\n')
    if lines and lines[0].strip() == '---':
        return '\n'.join(lines[1:])
    return text


def process_text(source_text: str, file_type: "FileType | str | None" = None,
                 options: "ProcessingOptions | Mapping[str, Any] | None" = None) -> ProcessingResult:
    return TheProcessor().process_text(source_text, file_type, options)


def process_request(request: Mapping[str, Any]) -> dict[str, Any]:
    # Host entry point: {sourceText, fileType, options} in, result mapping out
    result = process_text(request.get('sourceText', ''), request.get('fileType'), request.get('options'))
    return result.as_dict()
