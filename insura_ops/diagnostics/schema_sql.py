"""Static DDL for the expected tables.

Nothing here touches the database; the statements are returned for an
operator to run in the SQL editor.
"""

from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel

from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)

SQL_INSTRUCTIONS = "Please execute these SQL statements in the Supabase SQL Editor or use the migration file."
MIGRATION_FILE = "supabase/migrations/20240115000001_create_missing_tables.sql"

# Parents before children so the statements can run in order
TABLE_DDL: Dict[str, str] = {
    "companies": """
CREATE TABLE IF NOT EXISTS companies (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  name TEXT NOT NULL,
  industry TEXT,
  employee_count INTEGER NOT NULL DEFAULT 0,
  country TEXT,
  workpay_id TEXT,
  hubspot_id TEXT,
  status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('active', 'pending', 'inactive')),
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);""",
    "providers": """
CREATE TABLE IF NOT EXISTS providers (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  name TEXT NOT NULL,
  type TEXT NOT NULL CHECK (type IN ('insurer', 'broker')),
  country TEXT,
  products TEXT[] DEFAULT '{}',
  api_enabled BOOLEAN DEFAULT FALSE,
  status TEXT NOT NULL DEFAULT 'active' CHECK (status IN ('active', 'inactive')),
  contact_email TEXT,
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);""",
    "countries": """
CREATE TABLE IF NOT EXISTS countries (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  name TEXT NOT NULL UNIQUE,
  code CHAR(2) NOT NULL UNIQUE,
  currency TEXT,
  is_active BOOLEAN NOT NULL DEFAULT TRUE,
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);""",
    "employees": """
CREATE TABLE IF NOT EXISTS employees (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  company_id UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
  first_name TEXT NOT NULL,
  last_name TEXT NOT NULL,
  email TEXT,
  date_of_birth DATE,
  salary NUMERIC(14, 2),
  department TEXT,
  position TEXT,
  employment_date DATE,
  status TEXT NOT NULL DEFAULT 'active' CHECK (status IN ('active', 'terminated', 'on_leave')),
  dependents INTEGER NOT NULL DEFAULT 0,
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);""",
    "quotes": """
CREATE TABLE IF NOT EXISTS quotes (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  company_id UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
  quote_number TEXT NOT NULL UNIQUE,
  product_type TEXT NOT NULL,
  provider_id UUID REFERENCES providers(id),
  premium NUMERIC(14, 2) NOT NULL DEFAULT 0,
  employee_count INTEGER NOT NULL DEFAULT 0,
  status TEXT NOT NULL DEFAULT 'draft'
    CHECK (status IN ('draft', 'pending', 'sent', 'approved', 'accepted', 'rejected', 'expired')),
  valid_until DATE,
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);""",
    "benefits": """
CREATE TABLE IF NOT EXISTS benefits (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  quote_id UUID NOT NULL REFERENCES quotes(id) ON DELETE CASCADE,
  name TEXT NOT NULL,
  benefit_type TEXT NOT NULL
    CHECK (benefit_type IN ('medical', 'dental', 'vision', 'life', 'disability', 'wellness')),
  coverage_level TEXT,
  premium NUMERIC(14, 2) NOT NULL DEFAULT 0,
  deductible NUMERIC(14, 2) NOT NULL DEFAULT 0,
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);""",
    "policies": """
CREATE TABLE IF NOT EXISTS policies (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  company_id UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
  quote_id UUID REFERENCES quotes(id),
  provider_id UUID REFERENCES providers(id),
  policy_number TEXT NOT NULL UNIQUE,
  product_type TEXT NOT NULL,
  premium NUMERIC(14, 2) NOT NULL DEFAULT 0,
  status TEXT NOT NULL DEFAULT 'pending_approval'
    CHECK (status IN ('pending_approval', 'active', 'expired', 'cancelled')),
  start_date DATE,
  end_date DATE,
  covered_employees INTEGER NOT NULL DEFAULT 0,
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);""",
    "claims": """
CREATE TABLE IF NOT EXISTS claims (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  policy_id UUID NOT NULL REFERENCES policies(id) ON DELETE CASCADE,
  employee_id UUID REFERENCES employees(id),
  claim_number TEXT NOT NULL UNIQUE,
  claim_type TEXT NOT NULL,
  amount NUMERIC(14, 2) NOT NULL,
  status TEXT NOT NULL DEFAULT 'submitted'
    CHECK (status IN ('submitted', 'under_review', 'approved', 'rejected', 'paid')),
  submitted_date DATE DEFAULT CURRENT_DATE,
  resolved_date DATE,
  description TEXT,
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);""",
    "deals": """
CREATE TABLE IF NOT EXISTS deals (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  company_id UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
  quote_id UUID REFERENCES quotes(id) ON DELETE SET NULL,
  name TEXT NOT NULL,
  stage TEXT NOT NULL DEFAULT 'lead'
    CHECK (stage IN ('lead', 'qualified', 'quote', 'negotiation', 'closed_won', 'closed_lost')),
  value NUMERIC(14, 2) NOT NULL DEFAULT 0,
  probability INTEGER NOT NULL DEFAULT 10 CHECK (probability BETWEEN 0 AND 100),
  assigned_to TEXT,
  expected_close_date DATE,
  hubspot_deal_id TEXT,
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);""",
    "commissions": """
CREATE TABLE IF NOT EXISTS commissions (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  deal_id UUID NOT NULL REFERENCES deals(id) ON DELETE CASCADE,
  premium NUMERIC(14, 2) NOT NULL,
  rate NUMERIC(5, 2) NOT NULL,
  amount NUMERIC(14, 2) NOT NULL DEFAULT 0,
  status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'calculated', 'approved', 'paid')),
  payout_date DATE,
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);""",
    "renewals": """
CREATE TABLE IF NOT EXISTS renewals (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  policy_id UUID NOT NULL REFERENCES policies(id) ON DELETE CASCADE,
  current_premium NUMERIC(14, 2) NOT NULL DEFAULT 0,
  renewal_premium NUMERIC(14, 2),
  status TEXT NOT NULL DEFAULT 'upcoming'
    CHECK (status IN ('upcoming', 'in_progress', 'quoted', 'renewed', 'lapsed')),
  renewal_date DATE NOT NULL,
  notes TEXT,
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);""",
    "customers": """
CREATE TABLE IF NOT EXISTS customers (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  company_id UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
  first_name TEXT NOT NULL,
  last_name TEXT NOT NULL,
  email TEXT,
  phone TEXT,
  position TEXT,
  is_primary BOOLEAN NOT NULL DEFAULT FALSE,
  notes TEXT,
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);""",
    "customer_interactions": """
CREATE TABLE IF NOT EXISTS customer_interactions (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  customer_id UUID NOT NULL REFERENCES customers(id) ON DELETE CASCADE,
  interaction_type TEXT NOT NULL DEFAULT 'note'
    CHECK (interaction_type IN ('call', 'email', 'meeting', 'note')),
  subject TEXT,
  notes TEXT,
  interaction_date TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);""",
    "user_profiles": """
CREATE TABLE IF NOT EXISTS user_profiles (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  user_id UUID NOT NULL UNIQUE REFERENCES auth.users(id) ON DELETE CASCADE,
  role TEXT NOT NULL DEFAULT 'client' CHECK (role IN ('client', 'admin', 'agent')),
  full_name TEXT,
  phone TEXT,
  company_id UUID REFERENCES companies(id) ON DELETE SET NULL,
  avatar_url TEXT,
  preferences JSONB NOT NULL DEFAULT '{}',
  created_by UUID REFERENCES auth.users(id),
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);""",
    "activities": """
CREATE TABLE IF NOT EXISTS activities (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  entity_type TEXT NOT NULL,
  entity_id UUID NOT NULL,
  action TEXT NOT NULL,
  description TEXT,
  old_value JSONB,
  new_value JSONB,
  user_id UUID REFERENCES auth.users(id),
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);""",
}


class TableStatement(BaseModel):
    name: str
    sql: str


class SqlScript(BaseModel):
    tables: List[TableStatement]
    message: str = SQL_INSTRUCTIONS
    migration_file: str = MIGRATION_FILE

    def render(self) -> str:
        """All statements as one script."""
        return "\n\n".join(t.sql for t in self.tables) + "\n"


def generate_table_sql(tables: Optional[Iterable[str]] = None) -> SqlScript:
    """CREATE TABLE statements for the requested tables (default: all).

    Statements keep dependency order regardless of the order requested.

    Raises:
        ValueError: If a requested table is not a known table
    """
    if tables is None:
        wanted = set(TABLE_DDL)
    else:
        wanted = set(tables)
        unknown = sorted(wanted - set(TABLE_DDL))
        if unknown:
            raise ValueError(f"Unknown table(s): {', '.join(unknown)}")

    statements = [TableStatement(name=name, sql=ddl.strip()) for name, ddl in TABLE_DDL.items() if name in wanted]
    LOGGER.debug(f"Generated DDL for {len(statements)} table(s)")
    return SqlScript(tables=statements)
