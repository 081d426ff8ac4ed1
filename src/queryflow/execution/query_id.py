import hashlib
import random
from datetime import datetime


def generate_query_id(datasource: str, sql: str) -> str:
    """Return an identifier of the form ``YYYYMMDD_HHMMSS_<md5 hex>``.

    The timestamp uses the local clock. The digest covers the datasource,
    the query, the full submission instant and a random integer in
    ``[0, 10000)``; uniqueness is probabilistic and no store is consulted.
    """
    now = datetime.now().astimezone()
    rand = random.randrange(10000)
    seed = f"{datasource};{sql};{now.isoformat()};{rand}"
    digest = hashlib.md5(seed.encode("utf-8")).hexdigest()
    return f"{now:%Y%m%d_%H%M%S}_{digest}"
