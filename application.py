import atexit
import logging

import config
from db import StoreHandle
from server import create_app

logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s %(levelname)s %(message)s')

store = StoreHandle(config.DATABASE_URL)
atexit.register(store.close)

app = create_app(store)

if __name__ == '__main__':
    app.run(host=config.PLANNER_HOST, port=config.PLANNER_PORT)
