#!/usr/bin/env python3
"""
Database initialization script

Sets up the household database schema and, optionally, a household with
members and starter rules created from templates.
"""
import argparse
import sys
import uuid
from pathlib import Path
from typing import List

import psycopg2

from household_splits.core.exceptions import RuleConfigurationError
from household_splits.core.models import SplittingRule
from household_splits.core.rule_templates import (
    RULE_TEMPLATES,
    create_rule_from_template,
    get_template_by_id,
)
from household_splits.storage.rule_store import save_rule
from household_splits.utils.db_connection import get_db_connection

SCHEMA_FILE = Path(__file__).parent.parent / "db" / "schema.sql"


def run_sql_file(conn, sql_file: Path, description: str):
    """Execute a SQL file"""
    print(f"\n📄 {description}")
    print(f"   File: {sql_file}")

    with open(sql_file, 'r') as f:
        sql = f.read()

    cursor = conn.cursor()
    try:
        cursor.execute(sql)
        conn.commit()
        print("   ✅ Success")
    except psycopg2.Error as e:
        conn.rollback()
        print(f"   ❌ Error: {e}")
        raise
    finally:
        cursor.close()


def create_household(conn, name: str, member_ids: List[str]) -> str:
    """Create a household; the first member is its creator"""
    print(f"\n🏠 Creating household '{name}'")

    cursor = conn.cursor()
    try:
        cursor.execute(
            "INSERT INTO households (name) VALUES (%s) RETURNING id", (name,)
        )
        household_id = str(cursor.fetchone()['id'])

        for index, user_id in enumerate(member_ids):
            cursor.execute("""
                INSERT INTO household_members (household_id, user_id, role)
                VALUES (%s, %s, %s)
            """, (household_id, user_id, 'creator' if index == 0 else 'member'))

        conn.commit()
        print(f"   ✅ Created {household_id} with {len(member_ids)} members")
        return household_id

    except psycopg2.Error as e:
        conn.rollback()
        print(f"   ❌ Error: {e}")
        raise
    finally:
        cursor.close()


def create_template_rules(conn, household_id: str, member_ids: List[str], template_ids: List[str]) -> int:
    """Create starter rules from templates, skipping unknown template ids"""
    print(f"\n📚 Creating {len(template_ids)} rules from templates")

    created = 0
    for template_id in template_ids:
        template = get_template_by_id(template_id)
        if template is None:
            print(f"   ⚠️  Unknown template: {template_id}")
            continue

        fields = create_rule_from_template(template, member_ids, member_ids[0])
        try:
            rule = SplittingRule.from_dict({
                **fields,
                'id': str(uuid.uuid4()),
                'household_id': household_id,
                'created_by': member_ids[0],
            })
            save_rule(conn, rule)
        except RuleConfigurationError as e:
            print(f"   ❌ {template_id}: {e}")
            continue

        print(f"   ✅ {rule.rule_name} (priority {rule.priority})")
        created += 1

    return created


def print_summary(conn):
    """Print database summary"""
    cursor = conn.cursor()

    print("\n" + "=" * 80)
    print("📊 DATABASE SUMMARY")
    print("=" * 80)

    cursor.execute("SELECT COUNT(*) AS n FROM households")
    print(f"Households: {cursor.fetchone()['n']}")

    cursor.execute("""
        SELECT rule_type, COUNT(*) AS n FROM expense_splitting_rules
        WHERE is_active = TRUE
        GROUP BY rule_type ORDER BY rule_type
    """)
    print("\nActive splitting rules:")
    for row in cursor.fetchall():
        print(f"  • {row['rule_type']}: {row['n']}")

    cursor.execute("SELECT COUNT(*) AS n FROM transactions")
    print(f"\nTransactions: {cursor.fetchone()['n']}")

    print("=" * 80)

    cursor.close()


def main():
    """Main initialization function"""
    parser = argparse.ArgumentParser(description='Initialize the household splitting database')
    parser.add_argument('--household', help='Create a household with this name')
    parser.add_argument('--member', action='append', default=[],
                        help='Member user id (repeatable, first one creates the household)')
    parser.add_argument('--template', action='append', default=[],
                        help='Starter rule template id (repeatable)')
    parser.add_argument('--list-templates', action='store_true', help='List rule templates and exit')

    args = parser.parse_args()

    if args.list_templates:
        for template in RULE_TEMPLATES:
            print(f"{template.id:<26} {template.rule_type:<17} {template.name}")
        return

    if args.household and not args.member:
        print("❌ --household needs at least one --member")
        sys.exit(1)

    print("=" * 80)
    print("🚀 HOUSEHOLD DATABASE INITIALIZATION")
    print("=" * 80)

    if not SCHEMA_FILE.exists():
        print(f"\n❌ Missing schema file: {SCHEMA_FILE}")
        sys.exit(1)

    # Connect to database
    print("\n🔌 Connecting to database...")
    try:
        conn = get_db_connection()
        print("   ✅ Connected")
    except psycopg2.Error as e:
        print(f"   ❌ Connection failed: {e}")
        print("\nMake sure Postgres is running and DB_* variables are set")
        sys.exit(1)

    try:
        # 1. Create schema
        run_sql_file(conn, SCHEMA_FILE, "Creating database schema")

        # 2. Optional household with starter rules
        if args.household:
            household_id = create_household(conn, args.household, args.member)
            if args.template:
                create_template_rules(conn, household_id, args.member, args.template)

        # 3. Print summary
        print_summary(conn)

        print("\n✅ Database initialization complete!")
        print("\nNext steps:")
        print("  1. Apply rules: splits-apply <household_id>")
        print("  2. Review uncertain matches: splits-review <household_id> --user <user_id>")

    except psycopg2.Error as e:
        print(f"\n❌ Initialization failed: {e}")
        sys.exit(1)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
