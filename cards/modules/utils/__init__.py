"""Utility subpackage for the flashcard parser modules"""

from .logger import (
	get_logger,
	log_request,
	log_error,
	log_flashcard_parse,
	set_request_context,
	get_request_context,
)
from .text import (
	find_line_index_ignoring_ws,
	leading_whitespace,
	blank_frontmatter,
)

__all__ = [
	'get_logger',
	'log_request',
	'log_error',
	'log_flashcard_parse',
	'set_request_context',
	'get_request_context',
	'find_line_index_ignoring_ws',
	'leading_whitespace',
	'blank_frontmatter',
]
