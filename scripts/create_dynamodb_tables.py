import sys
from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

sys.path.insert(0, str(Path(__file__).parent.parent))

from reels.core.config import AWSSettings
from reels.services.social_store import create_dynamodb_tables


def main():
    settings = AWSSettings()
    logger.info(f"Creating DynamoDB tables in {settings.aws_region}...")

    try:
        created = create_dynamodb_tables(settings)
    except (BotoCoreError, ClientError) as e:
        logger.exception(f"Error creating DynamoDB tables: {e}")
        sys.exit(1)

    logger.success(f"DynamoDB tables ready, created: {', '.join(created) or 'none'}")


if __name__ == "__main__":
    main()
