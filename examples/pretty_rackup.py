#\ -p 9292
# The time-parity responder. Reload a few times: the greeting flips
# between <em> and <strong> every second.
#
#     pyrack examples/pretty_rackup.py
#
# The first line above is an options line; anything after "#\" is read as
# if typed on the pyrack command line.

from pyrack.apps import PrettyHello

run(PrettyHello())
