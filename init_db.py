"""
Создание таблиц tag_relations и content_objects напрямую через SQLAlchemy.

Для локальной разработки и тестовых стендов; в production - Alembic миграции.
"""

import asyncio

from tagrel.core.database import init_db


async def main():
    print("Создание таблиц...")
    await init_db()
    print("✓ Таблицы созданы успешно!")


if __name__ == "__main__":
    asyncio.run(main())
