#!/usr/bin/env python3

import re
import logging
from typing import Optional, Dict, List

logger = logging.getLogger(__name__)

# code|display name|aliases (already normalised: lower case, no spaces or dots)
_bookslist = """GEN|Genesis|ge gen gn gne
        EXO|Exodus|ex exo exod exd
        LEV|Leviticus|le lev lv
        NUM|Numbers|nu num nm nb numb
        DEU|Deuteronomy|de deu deut dt
        JOS|Joshua|jos josh jsh
        JDG|Judges|jdg judg jg jdgs
        RUT|Ruth|ru rut rth
        1SA|1 Samuel|1sa 1sam 1sm 1s 1samuel
        2SA|2 Samuel|2sa 2sam 2sm 2s 2samuel
        1KI|1 Kings|1ki 1kgs 1kg 1k 1kin 1kings
        2KI|2 Kings|2ki 2kgs 2kg 2k 2kin 2kings
        1CH|1 Chronicles|1ch 1chr 1chron 1chronicles
        2CH|2 Chronicles|2ch 2chr 2chron 2chronicles
        EZR|Ezra|ezr ezra
        NEH|Nehemiah|ne neh
        EST|Esther|es est esth
        JOB|Job|jb job
        PSA|Psalms|ps psa pss psalm psm pslm
        PRO|Proverbs|pr pro prov prv
        ECC|Ecclesiastes|ec ecc eccl eccles qoh
        SNG|Song of Solomon|sng song so sos songofsongs canticles cant
        ISA|Isaiah|is isa
        JER|Jeremiah|je jer jr
        LAM|Lamentations|la lam
        EZK|Ezekiel|ezk eze ezek
        DAN|Daniel|da dan dn
        HOS|Hosea|ho hos
        JOL|Joel|jl joe joel
        AMO|Amos|am amo
        OBA|Obadiah|ob oba obad
        JON|Jonah|jon jnh jonah
        MIC|Micah|mi mic mc
        NAM|Nahum|na nah nam
        HAB|Habakkuk|hab hb
        ZEP|Zephaniah|zep zeph zp
        HAG|Haggai|hag hg
        ZEC|Zechariah|zec zech zc
        MAL|Malachi|mal ml
        MAT|Matthew|mt mat matt
        MRK|Mark|mk mr mrk mar
        LUK|Luke|lk lu luk
        JHN|John|jn jhn joh
        ACT|Acts|ac act
        ROM|Romans|ro rom rm
        1CO|1 Corinthians|1co 1cor
        2CO|2 Corinthians|2co 2cor
        GAL|Galatians|ga gal
        EPH|Ephesians|eph ephes
        PHP|Philippians|php phil pp
        COL|Colossians|col
        1TH|1 Thessalonians|1th 1thes 1thess
        2TH|2 Thessalonians|2th 2thes 2thess
        1TI|1 Timothy|1ti 1tim
        2TI|2 Timothy|2ti 2tim
        TIT|Titus|ti tit
        PHM|Philemon|phm phlm philem pm
        HEB|Hebrews|heb
        JAS|James|jas jm jam
        1PE|1 Peter|1pe 1pet 1pt 1p
        2PE|2 Peter|2pe 2pet 2pt 2p
        1JN|1 John|1jn 1jo 1joh 1jhn
        2JN|2 John|2jn 2jo 2joh 2jhn
        3JN|3 John|3jn 3jo 3joh 3jhn
        JUD|Jude|jud jude jd
        REV|Revelation|re rev rv revelations apocalypse"""

_romanprefix = re.compile(r"^(iii|ii|i)\s+(?=\S)")
_romans = {"i": "1", "ii": "2", "iii": "3"}

booknames: Dict[str, str] = {}
bookaliases: Dict[str, str] = {}
allbooks: List[str] = []

for _l in _bookslist.splitlines():
    _code, _name, _aliases = _l.strip().split("|")
    allbooks.append(_code)
    booknames[_code] = _name
    for _a in [_code.lower(), _name] + _aliases.split():
        bookaliases[re.sub(r"[\s.]+", "", _a.lower())] = _code


def normalise(name: str) -> str:
    """ Reduces a free text book name to the form used as a key in bookaliases,
        e.g. 'II Kings.' -> '2kings' """
    s = name.strip().lower()
    if (m := _romanprefix.match(s)):
        s = _romans[m.group(1)] + s[m.end():]
    return re.sub(r"[\s.]+", "", s)


class BookKeyTranslator:
    """ Resolves the many spellings of a book name onto a canonical book code.
        Extra aliases (normalised or not) may be given as a dict of name -> code. """

    def __init__(self, aliases: Optional[Dict[str, str]] = None, prefixes: bool = True):
        self.aliases = dict(bookaliases)
        self.names = {normalise(v): k for k, v in booknames.items()}
        self.prefixes = prefixes
        if aliases is not None:
            for k, v in aliases.items():
                self.aliases[normalise(k)] = v

    def keyify(self, name: Optional[str], strict: bool = False) -> Optional[str]:
        """ Returns the book code for name or None. If strict, an unknown name
            raises InvalidBookNameError instead. """
        key = normalise(name) if name else ""
        res = self.aliases.get(key, None)
        if res is None and self.prefixes and len(key) > 2:
            hits = {v for k, v in self.names.items() if k.startswith(key)}
            if len(hits) == 1:
                res = hits.pop()
        logger.debug(f"keyify({name!r}) -> {res}")
        if res is None and strict:
            from biblepassage.reference import InvalidBookNameError
            raise InvalidBookNameError(f"{(name or '').strip()} is not a valid book")
        return res

    def __call__(self, name, strict=False):
        return self.keyify(name, strict=strict)
