#!/usr/bin/env python3

from typing import Optional, Dict, Any
from collections import UserList
import json, logging

logger = logging.getLogger(__name__)


class InvalidReferenceError(ValueError):
    """ Base class of everything that can go wrong making a Reference """
    pass

class MalformedReferenceError(InvalidReferenceError):
    pass

class InvalidBookNameError(InvalidReferenceError):
    pass

class InvalidChapterError(InvalidReferenceError):
    pass

class InvalidVerseError(InvalidReferenceError):
    pass

class InvalidRangeError(InvalidReferenceError):
    pass


class Environment:
    """ Configuration shared by the parser and the references it makes.
        datastore and translator are created from the versification when
        first needed. """
    raise_errors: bool = True
    versification: str = "eng"
    datastore = None
    translator = None
    __allfields__ = "raise_errors versification datastore translator".split()

    def __init__(self, **kw):
        for k, v in kw.items():
            if k not in self.__allfields__:
                raise TypeError(f"Unknown environment setting {k}")
            setattr(self, k, v)

    def getdatastore(self):
        if self.datastore is None:
            from biblepassage.versification import BookDataStore
            self.datastore = BookDataStore(self.versification)
        return self.datastore

    def gettranslator(self):
        if self.translator is None:
            from biblepassage.books import BookKeyTranslator
            self.translator = BookKeyTranslator()
        return self.translator

    def copy(self, **kw):
        for k in kw:
            if k not in self.__allfields__:
                raise TypeError(f"Unknown environment setting {k}")
        if 'versification' in kw and 'datastore' not in kw:
            kw['datastore'] = None
        res = self.__class__()
        for a in self.__allfields__:
            setattr(res, a, kw[a] if a in kw else getattr(self, a))
        return res

defaultenv = Environment()

def getenv(env: Optional[Environment] = None, **kw) -> Environment:
    """ Returns env (or the default environment) with any non None keyword
        settings applied to a copy """
    if env is None:
        env = defaultenv
    kw = {k: v for k, v in kw.items() if v is not None}
    return env.copy(**kw) if len(kw) else env

def intparam(v) -> Optional[int]:
    if v is None:
        return None
    elif isinstance(v, str):
        v = v.strip()
        if not v.isdigit():
            raise MalformedReferenceError(f"{v} is not a number")
    elif not isinstance(v, int) and not (isinstance(v, float) and v.is_integer()):
        raise MalformedReferenceError(f"{v} is not a whole number")
    return int(v)


class Reference:
    """ A contiguous range of verses within one book. A compound citation is
        a chain of references linked through child and parent. """
    _parmlist = ('book', 'from_chapter', 'from_verse', 'to_chapter', 'to_verse')

    def __init__(self, book: str, from_chapter=None, from_verse=None, to_chapter=None,
                    to_verse=None, env: Optional[Environment] = None,
                    raise_errors: Optional[bool] = None, **kw):
        self.env = getenv(env, raise_errors=raise_errors, **kw)
        self.datastore = self.env.getdatastore()
        self.book = book
        self.parent = None
        self.child = None
        self.exception = None
        err = None
        nums = []
        for x in (from_chapter, from_verse, to_chapter, to_verse):
            try:
                nums.append(intparam(x))
            except MalformedReferenceError as e:
                err = err or e
                nums.append(None)
        fc, fv, tc, tv = nums
        self.explicit = frozenset(a for a, v in zip(self._parmlist[1:], (fc, fv, tc, tv)) if v is not None)

        self.from_chapter = fc if fc is not None else 1
        self.from_verse = fv if fv is not None else 1
        if tc is not None:
            self.to_chapter = tc
        elif fc is not None:
            self.to_chapter = fc
        else:
            self.to_chapter = self.datastore.numchapters(book)
        if tv is not None:
            self.to_verse = tv
        elif fv is not None and not (tc is not None and self.to_chapter > self.from_chapter):
            self.to_verse = fv
        else:
            self.to_verse = self.datastore.numverses(book, self.to_chapter)

        if err is None:
            err = self._validate()
        if err is not None:
            logger.debug(f"Invalid reference {self.attributes()}: {err}")
            if self.env.raise_errors:
                raise err
            self.exception = err

    @classmethod
    def parse(cls, s: str, env: Optional[Environment] = None, **kw):
        from biblepassage.parser import ReferenceParser
        return ReferenceParser(env, **kw).parse(s)

    def _validate(self) -> Optional[InvalidReferenceError]:
        """ Checks each field in turn against the ones before it, returning
            the first failure """
        ds = self.datastore
        if not ds.hasbook(self.book):
            return InvalidBookNameError(f"{self.book} is not a valid book")
        name = self.bookname
        numchaps = ds.numchapters(self.book)
        if not 1 <= self.from_chapter <= numchaps:
            return InvalidChapterError(f"{name} doesn't have a chapter {self.from_chapter}")
        if not 1 <= self.from_verse <= ds.numverses(self.book, self.from_chapter):
            return InvalidVerseError(f"{name} {self.from_chapter} doesn't have a verse {self.from_verse}")
        if self.to_chapter < self.from_chapter:
            return InvalidRangeError("to_chapter cannot be before from_chapter")
        if self.to_chapter > numchaps:
            return InvalidChapterError(f"{name} doesn't have a chapter {self.to_chapter}")
        if self.to_verse < self.from_verse and self.from_chapter == self.to_chapter:
            return InvalidRangeError("to_verse cannot be before from_verse")
        if not 1 <= self.to_verse <= ds.numverses(self.book, self.to_chapter):
            return InvalidVerseError(f"{name} {self.to_chapter} doesn't have a verse {self.to_verse}")
        return None

    @property
    def error(self) -> Optional[str]:
        return str(self.exception) if self.exception is not None else None

    @property
    def bookname(self) -> str:
        return self.datastore.bookname(self.book)

    @property
    def inherit_book_key(self) -> bool:
        return 'from_chapter' in self.explicit

    @property
    def inherit_chapter(self) -> bool:
        return 'from_verse' in self.explicit

    def inheritable(self) -> Dict[str, Any]:
        """ What a following reference without its own book may take from this one """
        res = {'book': self.book}
        if self.inherit_chapter:
            res['from_chapter'] = self.to_chapter
        return res

    def isvalid(self) -> bool:
        return self.exception is None

    def wholechapters(self) -> bool:
        return self.from_verse == 1 and self.to_verse == self.datastore.numverses(self.book, self.to_chapter)

    def wholechapter(self) -> bool:
        return self.wholechapters() and self.from_chapter == self.to_chapter

    def wholebook(self) -> bool:
        return self.from_chapter == 1 and self.from_verse == 1 \
            and self.to_chapter == self.datastore.numchapters(self.book) \
            and self.to_verse == self.datastore.numverses(self.book, self.to_chapter)

    def attributes(self) -> Dict[str, Any]:
        return {a: getattr(self, a) for a in self._parmlist}

    def addchild(self, ref: "Reference") -> "Reference":
        self.child = ref
        ref.parent = self
        return ref

    def __eq__(self, o):
        if not isinstance(o, Reference):
            return False
        return self.attributes() == o.attributes()

    def __hash__(self):
        return hash(tuple(getattr(self, a) for a in self._parmlist))

    def __iter__(self):
        r = self
        while r is not None:
            yield r
            r = r.child

    def __str__(self):
        return self.str() or ""

    def __repr__(self):
        if not self.isvalid():
            return f"Reference({self.error!r})"
        return f"Reference('{self.str()}')"

    def str(self) -> Optional[str]:
        """ Canonical citation of this reference and those that follow it, or
            None if the reference is invalid """
        if not self.isvalid():
            return None
        res = self._childstr() if self.parent is not None else self._rootstr()
        if self.child is not None:
            res += self.child.str() or ""
        return res

    def _onechapterbook(self):
        return self.datastore.numchapters(self.book) == 1

    def _singleverse(self):
        return self.from_chapter == self.to_chapter and self.from_verse == self.to_verse

    def _showsverse(self) -> bool:
        """ Whether the rendered form includes a verse, so that a following
            reference inherits this one's chapter when parsed """
        if self.parent is None or self.parent.book != self.book:
            return not (self.wholebook() if self._onechapterbook() else self.wholechapters())
        return not self.wholechapters() or (self.parent._showsverse() and not self._onechapterbook())

    def _rootstr(self):
        if self._onechapterbook():
            return self.bookname + self._versespart()
        return self.bookname + self._frompart() + self._topart()

    def _childstr(self):
        if self.book != self.parent.book:
            return ", " + self._rootstr()
        if self._onechapterbook():
            res = self._versespart()
        elif self.parent._showsverse():
            res = self._versedpart()
        else:
            res = self._frompart() + self._topart()
        if not res:
            return ", " + self._rootstr()
        return "," + res

    def _versespart(self):
        """ Verses of a single chapter book, which never show the chapter """
        if self.wholechapters():
            return ""
        res = f" {self.from_verse}"
        if self.to_verse != self.from_verse:
            res += f"-{self.to_verse}"
        return res

    def _frompart(self):
        if self.wholebook():
            return ""
        res = f" {self.from_chapter}"
        if not self.wholechapters():
            res += f":{self.from_verse}"
        return res

    def _topart(self):
        if self.wholebook() or self._singleverse() or self.wholechapter():
            return ""
        if self.from_chapter == self.to_chapter:
            return f"-{self.to_verse}"
        res = f"-{self.to_chapter}"
        if not self.wholechapters():
            res += f":{self.to_verse}"
        return res

    def _versedpart(self):
        # chapter and verse always given, else a lone number would be read as a verse
        res = f" {self.from_chapter}:{self.from_verse}"
        if self.from_chapter != self.to_chapter:
            res += f"-{self.to_chapter}:{self.to_verse}"
        elif self.to_verse != self.from_verse:
            res += f"-{self.to_verse}"
        return res


class InvalidReference:
    """ Returned instead of a Reference when parsing fails and errors are not raised """

    def __init__(self, exception):
        if isinstance(exception, str):
            exception = InvalidReferenceError(exception)
        self.exception = exception
        self.child = None
        self.parent = None

    @property
    def error(self) -> str:
        return str(self.exception)

    def isvalid(self):
        return False

    def wholebook(self):
        return False

    def wholechapter(self):
        return False

    def wholechapters(self):
        return False

    def attributes(self):
        return {}

    def str(self):
        return None

    def __str__(self):
        return ""

    def __repr__(self):
        return f"InvalidReference({self.error!r})"

    def __iter__(self):
        yield self


class Passage(UserList):
    """ The references of a compound citation in order. Given a list of
        references, links them into a chain. """

    def __init__(self, content=None, env: Optional[Environment] = None, **kw):
        if isinstance(content, str):
            content = Reference.parse(content, env, **kw)
        if isinstance(content, (Reference, InvalidReference)):
            super().__init__(list(content))
        else:
            super().__init__(content or [])
            for a, b in zip(self.data, self.data[1:]):
                if a.child is not b:
                    a.addchild(b)

    def __str__(self):
        return self.str() or ""

    def str(self) -> Optional[str]:
        return self[0].str() if len(self) else None

    def isvalid(self):
        return len(self) > 0 and all(r.isvalid() for r in self)

    @property
    def first(self):
        return self[0] if len(self) else None

    @property
    def last(self):
        return self[-1] if len(self) else None


class RefJSONEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, Reference):
            return obj.attributes()
        elif isinstance(obj, InvalidReference):
            return {'error': obj.error}
        elif isinstance(obj, Passage):
            if not obj.isvalid():
                return {'error': obj[0].error if len(obj) else None}
            return {'reference': str(obj), 'ranges': list(obj)}
        return super().default(obj)
