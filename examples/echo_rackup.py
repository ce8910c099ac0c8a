#\ -p 9393
# A handler that finally looks at its environ. It's a plain function
# defined right here in the descriptor: no base class, no imports.
#
#     pyrack examples/echo_rackup.py
#     curl -i 'http://127.0.0.1:9393/some/path?x=1'


def echo(environ):
    lines = [
        f"{environ['REQUEST_METHOD']} {environ['PATH_INFO']}\n",
        f"query: {environ['QUERY_STRING'] or '-'}\n",
        f"from: {environ['REMOTE_ADDR']}\n",
    ]
    for key in sorted(environ):
        if key.startswith("HTTP_"):
            lines.append(f"{key}: {environ[key]}\n")
    return [200, {"Content-Type": "text/plain; charset=utf-8"}, lines]


run(echo)
