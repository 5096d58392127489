import argparse
import json
import os
from typing import Any, Dict

from qms.api.main import WEBSOCKET_ENDPOINTS, app


# PUBLIC_INTERFACE
def build_openapi_schema() -> Dict[str, Any]:
    """OpenAPI document of the REST routes plus an x-websocket-endpoints extension."""
    schema = dict(app.openapi())
    schema["x-websocket-endpoints"] = WEBSOCKET_ENDPOINTS
    return schema


def main() -> None:
    parser = argparse.ArgumentParser(description="Write the Quality API OpenAPI document.")
    parser.add_argument("--output", default=os.path.join("interfaces", "openapi.json"))
    args = parser.parse_args()

    os.makedirs(os.path.dirname(args.output) or ".", exist_ok=True)
    with open(args.output, "w", encoding="utf-8") as f:
        json.dump(build_openapi_schema(), f, indent=2, ensure_ascii=False)


if __name__ == "__main__":
    main()
