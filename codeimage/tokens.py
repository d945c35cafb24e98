"""
Turn Python source text into an ordered sequence of integer token-kind codes.

Codes are ``token.exact_type`` values, so every operator has its own kind.
Keywords are lifted out of ``NAME`` into codes starting at ``token.N_TOKENS``
(one per entry of ``keyword.kwlist``), which keeps identifiers and keywords
apart. Comments, blank-line ``NL`` tokens and the ``ENCODING``/``ENDMARKER``
bookends are dropped; ``NEWLINE``, ``INDENT`` and ``DEDENT`` are kept because
they carry block structure.
"""
import io
import keyword
import logging
import token
import tokenize
from pathlib import Path

from .errors import MissingFileError, TokenizeError

logger = logging.getLogger(__name__)

KEYWORD_BASE = token.N_TOKENS
KEYWORD_CODES = {kw: KEYWORD_BASE + i for i, kw in enumerate(keyword.kwlist)}

TRIVIA = frozenset({tokenize.ENCODING, tokenize.ENDMARKER, tokenize.NL, tokenize.COMMENT})

# Smallest and largest code this extractor can emit
FIXED_RANGE = (0, KEYWORD_BASE + len(keyword.kwlist) - 1)


def token_code(tok):
    if tok.type == tokenize.NAME and tok.string in KEYWORD_CODES:
        return KEYWORD_CODES[tok.string]
    return tok.exact_type


def _collect(tokens, source):
    codes = []
    try:
        for tok in tokens:
            if tok.type in TRIVIA:
                continue
            codes.append(token_code(tok))
    except (tokenize.TokenError, SyntaxError) as e:
        raise TokenizeError(source, e.args[0] if e.args else str(e)) from e
    except UnicodeDecodeError as e:
        raise TokenizeError(source, f'not valid {e.encoding} text ({e.reason})') from e
    return tuple(codes)


def extract_tokens(text, source='<string>'):
    """Return the token-kind codes of ``text`` as a tuple, in source order.

    Raises TokenizeError if the text cannot be tokenized.
    """
    return _collect(tokenize.generate_tokens(io.StringIO(text).readline), source)


def extract_file(path, encoding=None):
    """Token-kind codes of a source file.

    The file is read as bytes so a UTF-8 BOM or a ``# coding:`` line picks the
    encoding; ``encoding`` forces one instead.
    """
    path = Path(path)
    if not path.is_file():
        raise MissingFileError(path, f"Error: The source file '{path}' does not exist.")
    with path.open('rb') as f:
        if encoding is None:
            codes = _collect(tokenize.tokenize(f.readline), path)
        else:
            try:
                text = f.read().decode(encoding)
            except UnicodeDecodeError as e:
                raise TokenizeError(path, f'not valid {encoding} text ({e.reason})') from e
            codes = extract_tokens(text.lstrip('\ufeff'), source=path)
    logger.debug('%s: %d tokens', path, len(codes))
    return codes


def code_name(code):
    """Readable name for a code, for logs and debugging."""
    if KEYWORD_BASE <= code <= FIXED_RANGE[1]:
        return f'KEYWORD_{keyword.kwlist[code - KEYWORD_BASE].upper()}'
    return token.tok_name.get(code, str(code))
