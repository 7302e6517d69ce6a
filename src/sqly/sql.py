"""
SQL placeholder handling.

Queries may be written with either `?` or `%s` positional placeholders on
every dialect. Before issuance they are rewritten to the dialect's native
style in a single tokenizing pass that leaves string literals untouched:

    SQL -> Tokenize -> Rewrite placeholders outside literals -> SQL
"""
import re
from dataclasses import dataclass
from enum import Enum, auto

__all__ = [
    'tokenize_sql',
    'standardize_placeholders',
]


class TokenType(Enum):
    """Token types identified during SQL parsing."""
    SQL_TEXT = auto()
    STRING_LITERAL = auto()
    POSITIONAL_PH = auto()      # %s or ?
    REGEXP_FUNC = auto()


@dataclass(slots=True)
class Token:
    """Token from SQL parsing."""
    type: TokenType
    text: str
    start: int
    end: int


# regexp_replace(...) is kept whole so a `?` inside a pattern is not a placeholder
_TOKENIZE = re.compile(r"""
    (?P<string>'(?:[^']|'')*'|"(?:[^"]|"")*")
    |(?P<regexp>regexp_replace\s*\((?:[^()'"]|'(?:[^']|'')*'|"(?:[^"]|"")*"|\((?:[^()'"]|'(?:[^']|'')*'|"(?:[^"]|"")*")*\))*\))
    |(?P<percent_s>%s)
    |(?P<qmark>\?)
""", re.IGNORECASE | re.VERBOSE)


def tokenize_sql(sql: str) -> list[Token]:
    """Parse SQL into tokens in a single pass.

    >>> [t.type.name for t in tokenize_sql("select '?' from t where a = ?")]
    ['SQL_TEXT', 'STRING_LITERAL', 'SQL_TEXT', 'POSITIONAL_PH']
    """
    tokens = []
    last_end = 0

    for match in _TOKENIZE.finditer(sql):
        start, end = match.span()

        if start > last_end:
            tokens.append(Token(TokenType.SQL_TEXT, sql[last_end:start], last_end, start))

        if match.group('string'):
            ttype = TokenType.STRING_LITERAL
        elif match.group('regexp'):
            ttype = TokenType.REGEXP_FUNC
        else:
            ttype = TokenType.POSITIONAL_PH

        tokens.append(Token(ttype, match.group(0), start, end))
        last_end = end

    if last_end < len(sql):
        tokens.append(Token(TokenType.SQL_TEXT, sql[last_end:], last_end, len(sql)))

    return tokens


def standardize_placeholders(sql: str, dialect: str = 'postgresql') -> str:
    """Convert positional placeholders between %s and ? based on dialect.

    >>> standardize_placeholders("select * from t where a = %s and b = '%s'", 'sqlite')
    "select * from t where a = ? and b = '%s'"
    >>> standardize_placeholders("select * from t where a = ? and b = '?'", 'postgresql')
    "select * from t where a = %s and b = '?'"
    """
    if not sql:
        return sql

    if dialect == 'sqlite':
        source, target = '%s', '?'
    elif dialect == 'postgresql':
        source, target = '?', '%s'
    else:
        return sql

    if source not in sql:
        return sql

    result = []
    for token in tokenize_sql(sql):
        if token.type == TokenType.POSITIONAL_PH and token.text == source:
            result.append(target)
        else:
            result.append(token.text)
    return ''.join(result)


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
