#!/usr/bin/env python3

import json
from biblepassage.reference import (Reference, InvalidReference, Passage, Environment, RefJSONEncoder,
        InvalidReferenceError, MalformedReferenceError, InvalidBookNameError,
        InvalidChapterError, InvalidVerseError, InvalidRangeError)
from biblepassage.parser import ReferenceParser, parse
from biblepassage.books import BookKeyTranslator
from biblepassage.versification import BookDataStore, Versification, cached_versification


def main(argv=None):

    import argparse, logging, sys

    parser = argparse.ArgumentParser(description="Parse scripture citations and print them in canonical form")
    parser.add_argument("citations",nargs="+",help="Citations to parse, e.g. 'Genesis 1:1-2:3, 4:1'")
    parser.add_argument("-j","--json",action="store_true",help="Output the parsed ranges as JSON")
    parser.add_argument("-r","--versification",default="eng",help="Versification name or .vrs file [eng]")
    parser.add_argument("-l","--logging",help="Set logging level to biblepassage.log")
    parser.add_argument("-q","--quiet",action="store_true",help="Don't report errors")
    args = parser.parse_args(argv)

    if args.logging:
        try:
            loglevel = int(args.logging)
        except ValueError:
            loglevel = getattr(logging, args.logging.upper(), None)
        if isinstance(loglevel, int):
            parms = {'level':  loglevel, 'datefmt': '%d/%b/%Y %H:%M:%S',
                     'format': '%(asctime)s.%(msecs)03d %(levelname)s:%(module)s(%(lineno)d) %(message)s'}
            parms.update(filename="biblepassage.log", filemode="w", encoding="utf-8")
            logging.basicConfig(**parms)
        log = logging.getLogger('biblepassage')
    else:
        log = None

    def doerror(msg):
        if log:
            log.error(msg)
        if not args.quiet:
            print(msg, file=sys.stderr)

    try:
        env = Environment(raise_errors=False, datastore=BookDataStore(args.versification))
    except (FileNotFoundError, SyntaxError) as e:
        doerror(f"Unable to read versification {args.versification}: {e}")
        return 1

    status = 0
    for c in args.citations:
        res = Passage(parse(c, env))
        if not res.isvalid():
            doerror(res[0].error)
            status = 1
        elif args.json:
            print(json.dumps(res, cls=RefJSONEncoder))
        else:
            print(res.str())
    return status

if __name__ == "__main__":
    raise SystemExit(main())
