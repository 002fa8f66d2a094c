from .index import run

run()
