import asyncio
import mimetypes
import os
import sys

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from media_context.db import AsyncSessionLocal, DocumentStore, init_models
from media_context.ingest import MediaIngestor
from media_context.llm.client import GeminiClient
from media_context.main import configure_logging


async def main(path: str):
    configure_logging()

    print("Preparing database...")
    await init_models()

    content_type, _ = mimetypes.guess_type(path)
    with open(path, "rb") as f:
        data = f.read()

    async with AsyncSessionLocal() as session:
        ingestor = MediaIngestor(client=GeminiClient(), store=DocumentStore(session))

        print(f"Annotating {path} ({len(data)} bytes)...")
        result = await ingestor.ingest(
            filename=os.path.basename(path),
            content_type=content_type or "",
            data=data,
        )

    print(result.model_dump_json(indent=2))

    if result.report and not result.report.complete:
        # Partial success: some segments are missing
        sys.exit(2)

if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: annotate_file.py <path>")
        sys.exit(1)
    asyncio.run(main(sys.argv[1]))
