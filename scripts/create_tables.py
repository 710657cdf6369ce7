#!/usr/bin/env python3
"""Create the bookings table for an environment.

Creates <prefix>-bookings with the booking_date GSI the slots endpoint
queries. Safe to re-run: an existing table is left as it is.

Usage:
    python scripts/create_tables.py --env dev
    python scripts/create_tables.py --env dev --sample-booking
"""

import argparse
import datetime as dt
import os
from typing import Any

import boto3
from botocore.exceptions import ClientError

BOOKING_DATE_INDEX = "booking_date-index"


def get_table_name(prefix: str, table: str) -> str:
    """Get full table name with environment prefix."""
    return f"{prefix}-{table}"


def bookings_table_definition(prefix: str) -> dict[str, Any]:
    """create_table arguments for the bookings table."""
    return {
        "TableName": get_table_name(prefix, "bookings"),
        "KeySchema": [{"AttributeName": "booking_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "booking_id", "AttributeType": "S"},
            {"AttributeName": "booking_date", "AttributeType": "S"},
        ],
        "GlobalSecondaryIndexes": [
            {
                "IndexName": BOOKING_DATE_INDEX,
                "KeySchema": [{"AttributeName": "booking_date", "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            },
        ],
        "BillingMode": "PAY_PER_REQUEST",
    }


def create_bookings_table(client: Any, prefix: str) -> bool:
    """Create the bookings table.

    Returns:
        True if created, False if it already existed.
    """
    try:
        client.create_table(**bookings_table_definition(prefix))
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceInUseException":
            return False
        raise
    client.get_waiter("table_exists").wait(TableName=get_table_name(prefix, "bookings"))
    return True


def put_sample_booking(resource: Any, prefix: str) -> str:
    """Insert one pending booking for local testing. Returns its ID."""
    booking_id = "BK-SAMPLE000001"
    resource.Table(get_table_name(prefix, "bookings")).put_item(
        Item={
            "booking_id": booking_id,
            "user_id": "sample-user",
            "court_label": "Lapangan A",
            "booking_date": "1 Januari 2027",
            "time_slot": "08:00-09:00",
            "amount": 200000,
            "payment_status": "pending",
            "created_at": dt.datetime.now(dt.UTC).isoformat(),
        }
    )
    return booking_id


def main() -> int:
    """Run the table setup."""
    parser = argparse.ArgumentParser(description="Create DynamoDB tables for court bookings")
    parser.add_argument(
        "--env",
        choices=["dev", "staging", "prod"],
        default="dev",
        help="Target environment (default: dev)",
    )
    parser.add_argument(
        "--prefix",
        default=None,
        help="Table prefix (default: DYNAMODB_TABLE_PREFIX or booking-<env>)",
    )
    parser.add_argument(
        "--region",
        default=os.environ.get("AWS_DEFAULT_REGION", "eu-west-1"),
        help="AWS region (default: eu-west-1 or AWS_DEFAULT_REGION env var)",
    )
    parser.add_argument(
        "--sample-booking",
        action="store_true",
        help="Insert a sample pending booking",
    )

    args = parser.parse_args()
    prefix = args.prefix or os.environ.get("DYNAMODB_TABLE_PREFIX", f"booking-{args.env}")

    print(f"\nSetting up {prefix} tables (region: {args.region})\n")

    client = boto3.client("dynamodb", region_name=args.region)
    try:
        created = create_bookings_table(client, prefix)
    except ClientError as e:
        print(f"  Failed to create bookings table: {e}")
        return 1

    table_name = get_table_name(prefix, "bookings")
    print(f"  {'Created' if created else 'Already exists'}: {table_name}")

    if args.sample_booking:
        resource = boto3.resource("dynamodb", region_name=args.region)
        booking_id = put_sample_booking(resource, prefix)
        print(f"  Sample booking: {booking_id}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
