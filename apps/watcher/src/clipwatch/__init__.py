"""
clipdeck watcher application.

Command line front end (`clipdeck`) and the long-running clipboard watcher built
on the clipcore and clipservices libraries.
"""
