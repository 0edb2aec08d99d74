import re, os
from functools import reduce
from typing import Optional, List
from biblepassage.books import booknames, allbooks
import logging

logger = logging.getLogger(__name__)

versifications = {}

def readsrc(src):
    """ Returns the text of src, which may be an open file, a path or the text itself """
    if hasattr(src, "read"):
        return src.read()
    elif "\n" in src or len(src) > 255:
        return src
    elif os.path.exists(src):
        with open(src, encoding="utf-8") as inf:
            return inf.read()
    raise FileNotFoundError(src)

def cached_versification(fname: Optional[str]) -> Optional['Versification']:
    """ Returns the Versification for a .vrs path, or for the name of a
        versification shipped with the package (e.g. "eng"), reading it once. """
    if fname is None:
        return None
    if fname not in versifications:
        if os.path.exists(fname):
            versifications[fname] = Versification(fname)
        else:
            fpath = os.path.join(os.path.dirname(__file__), fname + ".vrs")
            if os.path.exists(fpath):
                versifications[fname] = Versification(fpath)
    return versifications.get(fname, None)

class Versification:
    """ Chapter and verse structure of each book as read from a Paratext .vrs file """

    def __init__(self, fname=None):
        self.vnums = {}         # list of verse index to the start of each chapter keyed by book
        self.exclusions = set()
        self.name = None
        if fname is not None:
            self.readFile(fname)

    def __getitem__(self, bk):
        return self.vnums.get(bk, None)

    def __contains__(self, bk):
        return bk in self.vnums

    def readFile(self, fname):
        logger.debug(f"versification readFile({fname})")
        srcdat = readsrc(fname)
        for li in srcdat.splitlines():
            l = li.strip()
            if self.name is None and (m := re.match(r'^#\s+versification\s*"(.*?)"', l, flags=re.I)):
                self.name = m.group(1)
                continue
            l = re.sub(r"#!\s*", "", l)     # remove the magic #!
            l = re.sub(r"\s*#.*$", "", l)   # strip comments
            if not l:
                continue
            if "=" in l or l.startswith("*"):
                logger.debug(f"Ignoring mapping {l}")
            elif l.startswith("-"):         # excluded verse
                self.exclusions.add(l[1:].strip())
            else:                           # CV list
                b = l.split()
                if b[0] not in booknames:
                    logger.debug(f"Unknown book {b[0]} in {fname}")
                    continue
                try:
                    verses = [int(x.split(':')[1]) for x in b[1:]]
                except (IndexError, ValueError):
                    raise SyntaxError(f"Badly formed chapter list for {b[0]} in {fname}: {l}")
                versesums = reduce(lambda a, x: (a[0] + [a[1]+x], a[1]+x), verses, ([0], 0))
                self.vnums[b[0]] = versesums[0]

    def numchapters(self, bk: str) -> int:
        vbk = self.vnums.get(bk, None)
        return len(vbk) - 1 if vbk is not None else 0

    def numverses(self, bk: str, chap: int) -> int:
        """ Returns the number of verses in the chapter or 0 if there is no such chapter """
        vbk = self.vnums.get(bk, None)
        if vbk is None or chap is None or chap < 1 or chap >= len(vbk):
            return 0
        return vbk[chap] - vbk[chap-1]

    def books(self) -> List[str]:
        return [b for b in allbooks if b in self.vnums]


class BookDataStore:
    """ Answers the questions a Reference asks about a book: how many chapters,
        how many verses in a chapter and what the book is called. """

    def __init__(self, versification=None, names=None):
        if versification is None or isinstance(versification, str):
            vname = versification or "eng"
            versification = cached_versification(vname)
            if versification is None:
                raise FileNotFoundError(f"No versification found for {vname}")
        self.versification = versification
        self.names = names if names is not None else booknames

    def hasbook(self, bk: str) -> bool:
        return bk in self.versification

    def numchapters(self, bk: str) -> int:
        return self.versification.numchapters(bk)

    def numverses(self, bk: str, chap: int) -> int:
        return self.versification.numverses(bk, chap)

    def bookname(self, bk: str) -> str:
        return self.names.get(bk, bk)


def main():
    import argparse

    parser = argparse.ArgumentParser(description="List the chapter and verse counts of a versification")
    parser.add_argument("books", nargs="*", help="Book codes to list, defaults to all")
    parser.add_argument("-r", "--versification", default="eng", help="Versification name or .vrs file")
    args = parser.parse_args()

    vrs = cached_versification(args.versification)
    if vrs is None:
        parser.error(f"Unable to read versification {args.versification}")
    for bk in args.books or vrs.books():
        counts = [vrs.numverses(bk, c) for c in range(1, vrs.numchapters(bk) + 1)]
        print("{} {}".format(bk, " ".join(f"{i}:{v}" for i, v in enumerate(counts, 1))))

if __name__ == "__main__":
    main()
