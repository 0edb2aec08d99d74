#!/usr/bin/env python3

import re, logging
from typing import Optional, Dict, Any
from dataclasses import dataclass
from biblepassage.reference import (Reference, InvalidReference, Environment, getenv,
        InvalidReferenceError, MalformedReferenceError, InvalidBookNameError, InvalidChapterError)

logger = logging.getLogger(__name__)

# each gap between tokens has a single \s* so failed matches stay linear
_regexes = {
    "book": r"(?P<book>(?:\d\s*)?[A-Za-z](?:[A-Za-z\s]*[A-Za-z])?)",
    "numbers": r"""(?:\s*(?P<from_chapter>\d+)(?:(?P<cvsep1>:)(?P<from_verse>\d+))?
                     (?:\s*-\s*(?P<to_chapter>\d+)(?:(?P<cvsep2>:)(?P<to_verse>\d+))?)?)?""",
    "rest": r"\s*(?:,(?P<rest>.*))?$",
    "full": r"^\s*{book}{numbers}{rest}",
    "child": r"^{numbers}{rest}"
    }

regexes = _regexes
for i in range(2):
    regexes = {k: v.format(**regexes) for k, v in regexes.items()}

_refull = re.compile(regexes["full"], flags=re.X)
_rechild = re.compile(regexes["child"], flags=re.X)


@dataclass
class Tokens:
    """ The pieces of one segment of a citation. The numbers are held by
        position only; what they mean depends on the book. """
    book: Optional[str] = None
    from_chapter: Optional[int] = None
    from_verse: Optional[int] = None
    to_chapter: Optional[int] = None
    to_verse: Optional[int] = None
    cvsep: bool = False
    rest: Optional[str] = None

    @classmethod
    def fromMatch(cls, m):
        gs = m.groupdict()
        nums = [int(gs[a]) if gs[a] is not None else None
                    for a in ('from_chapter', 'from_verse', 'to_chapter', 'to_verse')]
        # a bare trailing comma ends the citation
        rest = gs['rest'].lstrip() if gs['rest'] else None
        return cls(gs.get('book', None), *nums, cvsep=bool(gs['cvsep1'] or gs['cvsep2']), rest=rest)

    def hasnumbers(self):
        return any(x is not None for x in (self.from_chapter, self.from_verse, self.to_chapter, self.to_verse))


def tokenize(s: str) -> Optional[Tokens]:
    """ Splits a citation that starts with a book name """
    m = _refull.match(s)
    return Tokens.fromMatch(m) if m is not None else None

def tokenize_child(s: str) -> Optional[Tokens]:
    """ Splits a continuation segment, which has no book name """
    m = _rechild.match(s)
    return Tokens.fromMatch(m) if m is not None else None


def resolve_single(tokens: Tokens, bookname: str) -> Dict[str, Any]:
    """ A single chapter book has no chapters to cite, so the numbers in the
        chapter positions are verses """
    if tokens.cvsep:
        raise InvalidChapterError(f"{bookname} doesn't have any chapters")
    return {'from_verse': tokens.from_chapter, 'to_verse': tokens.to_chapter}

def resolve_multi(tokens: Tokens) -> Dict[str, Any]:
    if tokens.from_chapter is None:
        return {}
    res = {'from_chapter': tokens.from_chapter, 'from_verse': tokens.from_verse}
    if tokens.from_verse is not None and tokens.to_verse is None:
        # 3:16-18 the number after the range is a verse
        res['to_verse'] = tokens.to_chapter
    else:
        res.update(to_chapter=tokens.to_chapter, to_verse=tokens.to_verse)
    return res

def resolve_child(tokens: Tokens, inherited: Dict[str, Any], bookname: str, onechapter: bool = False) -> Dict[str, Any]:
    """ Resolves the numbers of a continuation segment given what the
        reference before it lets it inherit """
    if tokens.from_chapter is None:
        raise MalformedReferenceError(f"Missing chapter or verse after {bookname}")
    if onechapter:
        return resolve_single(tokens, bookname)
    res = {}
    if 'from_chapter' in inherited:
        if tokens.from_verse is not None:
            res.update(from_chapter=tokens.from_chapter, from_verse=tokens.from_verse)
        else:
            res.update(from_chapter=inherited['from_chapter'], from_verse=tokens.from_chapter)
    else:
        res.update(from_chapter=tokens.from_chapter, from_verse=tokens.from_verse)
    if tokens.to_verse is not None:
        res.update(to_chapter=tokens.to_chapter, to_verse=tokens.to_verse)
    elif res['from_verse'] is not None:
        res['to_verse'] = tokens.to_chapter
    else:
        res['to_chapter'] = tokens.to_chapter
    return res


class ReferenceParser:
    """ Parses citations like 'Genesis 1:1-2:3, 4:1' into a chain of References """

    def __init__(self, env: Optional[Environment] = None, **kw):
        self.env = getenv(env, **kw)
        self.raise_errors = self.env.raise_errors
        self.translator = self.env.gettranslator()
        self.datastore = self.env.getdatastore()
        # references always raise here, parse() decides what the caller sees
        self._refenv = self.env.copy(raise_errors=True, datastore=self.datastore, translator=self.translator)

    def parse(self, s: str):
        """ Returns the first Reference of the citation. On failure raises an
            InvalidReferenceError or, if not raising errors, returns an
            InvalidReference """
        try:
            return self._parse(s)
        except InvalidReferenceError as e:
            logger.debug(f"Failed to parse {s!r}: {e}")
            if self.raise_errors:
                raise
            return InvalidReference(e)

    def _parse(self, s: str) -> Reference:
        tokens = tokenize(s)
        if tokens is None:
            raise MalformedReferenceError(f"{s} is not a valid reference")
        book = self.translator.keyify(tokens.book, strict=True)
        if not self.datastore.hasbook(book):
            raise InvalidBookNameError(f"{tokens.book.strip()} is not a valid book")
        if self._onechapter(book):
            fields = resolve_single(tokens, self.datastore.bookname(book))
        else:
            fields = resolve_multi(tokens)
        logger.debug(f"{s!r}: {book} {fields}")
        ref = Reference(book, env=self._refenv, **fields)
        if tokens.rest is not None:
            ref.addchild(self._parsechild(tokens.rest, ref))
        return ref

    def _parsechild(self, s: str, parent: Reference) -> Reference:
        if tokenize(s) is not None:     # a new book
            return self._parse(s)
        tokens = tokenize_child(s)
        if tokens is None:
            raise MalformedReferenceError(f"{s} is not a valid reference")
        fields = resolve_child(tokens, parent.inheritable(), parent.bookname, self._onechapter(parent.book))
        logger.debug(f"{s!r}: {parent.book} {fields} after {parent.attributes()}")
        ref = Reference(parent.book, env=self._refenv, **fields)
        ref.parent = parent
        if tokens.rest is not None:
            ref.addchild(self._parsechild(tokens.rest, ref))
        return ref

    def _onechapter(self, book):
        return self.datastore.numchapters(book) == 1


def parse(s: str, env: Optional[Environment] = None, **kw):
    """ Parses a citation, see ReferenceParser.parse """
    return ReferenceParser(env, **kw).parse(s)
