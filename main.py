"""
=============================================================================
STEP 1: THE HANDLER CONTRACT
=============================================================================

Before we get to the complexity of a web framework (routing, templates,
sessions, ORMs...), let's look at the tiny agreement every one of them is
standing on. Run this file and read along:

    python main.py

=============================================================================
PART A: WHAT A WEB SERVER ACTUALLY NEEDS FROM YOUR CODE
=============================================================================

A web server is busy with sockets, bytes, threads and timeouts. Your
application is busy with deciding what to say. The two need a seam
between them, and the simplest possible seam is a FUNCTION CALL:

    ┌─────────────────────────────────────────────────────────────────┐
    │  SERVER                                                          │
    │  "Here is everything I know about this request."                 │
    │                                                                  │
    │          environ = {"REQUEST_METHOD": "GET",                     │
    │                     "PATH_INFO": "/",                            │
    │                     "HTTP_ACCEPT": "text/html", ...}             │
    │                                                                  │
    │                          │                                       │
    │                          ▼                                       │
    │  YOUR HANDLER                                                    │
    │  "Here is what to send back."                                    │
    │                                                                  │
    │          return [200,                         ◄── status         │
    │                  {"Content-Type": "text/html"}, ◄── headers      │
    │                  ["Hello World"]]             ◄── body           │
    └─────────────────────────────────────────────────────────────────┘

One argument in. Three things out. That's the whole contract:

    status   an int                        200, 404, 500 ...
    headers  a dict of str to str          {"Content-Type": "text/html"}
    body     an iterable of str chunks     ["Hello", " ", "World"]

=============================================================================
PART B: THE RULES THAT KEEP IT WORKING
=============================================================================

    1. Always exactly three things, in that order.
    2. The status is a real HTTP status number (100-599).
    3. If there's a body, say what it is: Content-Type.
    4. The body is something you can loop over, to the end.
       A LIST of strings, not a string. (A string is loopable too,
       one character at a time. That's the classic bug.)
    5. Build a new answer every time. Don't reuse the dict or list
       from the last request; another thread may be serving it.

If your handler raises an exception, that's fine: the SERVER turns it into
"500 Internal Server Error". Your handler doesn't need try/except for that.

=============================================================================
PART C: WHO CALLS IT?
=============================================================================

A launcher reads a small descriptor file that names the handler:

    ┌─ rackup.py ─────────────────────┐
    │ from my_server import MyServer  │
    │ run(MyServer())                 │
    └─────────────────────────────────┘

    $ pyrack rackup.py
    ╔════════════════════════════════════════╗
    ║ PyRack/1.0 serving MyServer            ║
    ║ Listening on http://127.0.0.1:9292/    ║
    ...

and from then on calls your handler once per request.

=============================================================================
NOW LET'S WRITE THE CODE!
=============================================================================
"""

import time

from pyrack import Server, ServerConfig, make_environ, validate_response, InvalidResponseError
from pyrack.apps import PrettyHello


# =============================================================================
# STEP 1: A HANDLER IS JUST A FUNCTION
# =============================================================================
# No base class, no decorator, no framework import. It takes the environ
# (which we don't even look at yet) and returns the triple.

def hello(environ):
    return [200, {"Content-Type": "text/html"}, ["Hello World"]]


environ = make_environ("/")   # a request environment, built by hand
status, headers, body = hello(environ)

print("✓ Called hello(environ) directly, no server involved")
print(f"  └─ status:  {status}")
print(f"  └─ headers: {headers}")
print(f"  └─ body:    {''.join(body)!r}")
print()


# =============================================================================
# STEP 2: OR AN OBJECT WITH A METHOD
# =============================================================================
# Anything callable works. Here the body depends on the clock: even
# seconds get <em>, odd seconds get <strong>. Same status, same headers,
# different body.

class MyServer:
    def __call__(self, environ):
        return [200, {"Content-Type": "text/html"}, self.pretty_response()]

    def pretty_response(self):
        if int(time.time()) % 2 == 0:
            return ["<em>Hello</em>"]
        return ["<strong>Hello</strong>"]


my_server = MyServer()
first = my_server(make_environ("/"))
time.sleep(1)
second = my_server(make_environ("/"))

print("✓ Called MyServer twice, one second apart")
print(f"  └─ first body:  {first[2]}")
print(f"  └─ second body: {second[2]}")
print()


# =============================================================================
# STEP 3: CHECK THE RULES
# =============================================================================
# validate_response() checks a return value against Part B and tells you
# which rule you broke. The server runs it on every response.

validate_response(hello(environ))
print("✓ hello() follows the contract")


def broken(environ):
    return [200, {"Content-Type": "text/html"}, "Hello World"]  # a str, not a list!


try:
    validate_response(broken(environ))
except InvalidResponseError as e:
    print("✗ broken() does not:")
    print(f"  └─ {e}")
print()


# =============================================================================
# STEP 4: SERVE IT
# =============================================================================
# MyServer also ships with the package as pyrack.apps.PrettyHello. Hand it
# to a hosting server: it binds port 9292, prints a banner, and calls the
# handler once for every request.
#
# Open http://127.0.0.1:9292/ and reload a few times.
# Press Ctrl+C to stop.

if __name__ == "__main__":
    Server(PrettyHello(), ServerConfig(port=9292)).run()
