# This file is part of the fsmlc project and is copyrighted under GPL v3
# or later.

import os
import sys
import time
import traceback

start = time.time()


class NoTranscript:
    def write(self, msg):
        pass

    def flush(self):
        pass


# Everything logged is also copied here, enabled or not.
transcript = NoTranscript()
enable_trace = False
enable_debug = False


def caller(n=0):
    tb = traceback.extract_stack(limit=3 + n)
    full_filename, line, method, statement = tb[-(3 + n)]
    filename = os.path.basename(full_filename)
    return "%s:%u" % (filename, line)


def write(enable, s):
    transcript.write("%s\n" % s)
    transcript.flush()
    if enable:
        # stdout may be carrying generated code.
        print(s, file=sys.stderr)


def _format(level, n, msg):
    return "%s %u %.2lf %s -- %s" % (
        level,
        os.getpid(),
        time.time() - start,
        caller(n),
        msg,
    )


def trace(msg):
    write(enable_trace, _format("TRACE", 1, msg))


def _trace(msg):
    """
    _trace is the same as trace except that it reports
    the caller as the one above who called _trace.
    """
    write(enable_trace, _format("TRACE", 2, msg))


def debug(msg):
    write(enable_debug, _format("DEBUG", 1, msg))


def _debug(msg):
    """
    _debug is the same as debug except that it reports
    the caller as the one above who called _debug.
    """
    write(enable_debug, _format("DEBUG", 2, msg))


def error(msg):
    write(True, _format("ERROR", 1, msg))
