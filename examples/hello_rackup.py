# Serve the constant responder:
#
#     pyrack examples/hello_rackup.py
#     curl -i http://127.0.0.1:9292/
#
# run() is provided by the launcher; it is not imported.

from pyrack.apps import HelloWorld

run(HelloWorld())
