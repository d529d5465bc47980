import json
import logging
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.app.config import AppConfig  # noqa: E402
from backend.app.dependencies import get_knowledge_service  # noqa: E402


OWNER_ID = "local-demo"

NOTE = (
    "Water boils at 100C at sea level. Measurements taken at sea level "
    "consistently observe boiling at 100C, while at higher altitudes the "
    "boiling point drops because atmospheric pressure is lower."
)


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logger = logging.getLogger("memograph.run")
    start = time.perf_counter()
    config = AppConfig()
    service = get_knowledge_service()
    logger.info("service ready in %.2fs (api prefix=%r)", time.perf_counter() - start, config.api_prefix)

    source = service.create_node(OWNER_ID, title="Boiling point notes", content=NOTE)
    report = service.extraction.run(OWNER_ID, NOTE, source_node_id=source.id)
    logger.info("extraction: %s", json.dumps(report.to_dict(), indent=2))

    embedded = service.indexer.embed_missing(OWNER_ID)
    logger.info("embedded %s extracted nodes", embedded)

    result = service.graphrag.run(OWNER_ID, "At what temperature does water boil?")
    logger.info("answer (%s sources): %s", len(result.sources), result.answer)
    logger.info("done in %.2fs", time.perf_counter() - start)


if __name__ == "__main__":
    main()
