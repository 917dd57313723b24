# Hrana SDK Examples

# Meant to be run cell by cell (select a block and run it) or as a script.
# Use the comments as cell definitions.

# Load requirements

import asyncio
import logging
import os

from dotenv import load_dotenv

from hrana_sdk import Hrana, StatementError, StreamTransaction

# Load environment from .env (HRANA_URL, HRANA_AUTH_TOKEN, HRANA_PROTOCOL)
load_dotenv()

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))


# Create a table and insert a few rows in one stream.
# The baton returned by each response is sent back automatically.
async def create_and_fill() -> None:
    async with Hrana.from_env() as client:
        async with client.stream() as stream:
            await stream.execute("DROP TABLE IF EXISTS users", want_rows=False)
            await stream.execute(
                "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, age INTEGER)",
                want_rows=False,
            )
            await stream.execute_batch(
                [
                    "INSERT INTO users (name, age) VALUES ('Alice', 30)",
                    "INSERT INTO users (name, age) VALUES ('Bob', 25)",
                ]
            )
            result = await stream.execute("INSERT INTO users (name, age) VALUES (:name, :age)", {"name": "Carol", "age": 41})
            print("Inserted rowid:", result.last_insert_rowid)


# Read rows back with a cursor
async def read_users() -> None:
    async with Hrana.from_env() as client:
        async with client.stream() as stream:
            result = await stream.execute("SELECT id, name, age FROM users WHERE age > ?", [26])
            rs = result.cursor()
            while rs.next():
                print(rs.get_long("id"), rs.get_string("name"), rs.get_int("age"))


# Manual commit: everything inside the block is rolled back on error
async def transfer() -> None:
    async with Hrana.from_env() as client:
        async with client.stream() as stream:
            try:
                async with StreamTransaction(stream):
                    await stream.execute("UPDATE users SET age = age + 1 WHERE name = 'Alice'", want_rows=False)
                    await stream.execute("UPDATE users SET agee = 0", want_rows=False)
            except StatementError as e:
                print("Rolled back:", e.message)


if __name__ == "__main__":
    asyncio.run(create_and_fill())
    asyncio.run(read_users())
    asyncio.run(transfer())
