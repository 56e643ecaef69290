"""Annual financial statements: one series per symbol keyed by date and period."""

from datetime import timedelta

from fmpcache.core.models import Endpoint, PartitionMode, RecordConfig
from fmpcache.core.records.fields import (
    Column,
    field_order,
    integer,
    integer_or_zero,
    iso_date,
    mapper,
    number_or_zero,
    text,
    upper_text,
)

INCOME_STATEMENTS = "income_statements"
BALANCE_SHEET_STATEMENTS = "balance_sheet_statements"
CASH_FLOW_STATEMENTS = "cash_flow_statements"

STATEMENT_TTL = timedelta(days=7)
UNIQUE_KEY = ("symbol", "date", "period")

HEADER = (
    Column("symbol", upper_text),
    Column("date", iso_date),
    Column("period", upper_text),
    Column("reportedCurrency", text),
    Column("cik", text),
    Column("fillingDate", iso_date),
    Column("acceptedDate", text),
    Column("calendarYear", integer),
)
LINKS = (
    Column("link", text),
    Column("finalLink", text),
)


def _amounts(*sources: str) -> tuple[Column, ...]:
    return tuple(Column(source, integer_or_zero) for source in sources)


def _ratios(*sources: str) -> tuple[Column, ...]:
    return tuple(Column(source, number_or_zero) for source in sources)


INCOME_COLUMNS = (
    *HEADER,
    *_amounts(
        "revenue",
        "costOfRevenue",
        "grossProfit",
        "researchAndDevelopmentExpenses",
        "generalAndAdministrativeExpenses",
        "sellingAndMarketingExpenses",
        "sellingGeneralAndAdministrativeExpenses",
        "otherExpenses",
        "operatingExpenses",
        "costAndExpenses",
        "interestIncome",
        "interestExpense",
        "depreciationAndAmortization",
        "ebitda",
        "operatingIncome",
        "totalOtherIncomeExpensesNet",
        "incomeBeforeTax",
        "incomeTaxExpense",
        "netIncome",
        "weightedAverageShsOut",
        "weightedAverageShsOutDil",
    ),
    *_ratios(
        "grossProfitRatio",
        "ebitdaratio",
        "operatingIncomeRatio",
        "incomeBeforeTaxRatio",
        "netIncomeRatio",
        "eps",
        "epsdiluted",
    ),
    *LINKS,
)

BALANCE_SHEET_COLUMNS = (
    *HEADER,
    *_amounts(
        "cashAndCashEquivalents",
        "shortTermInvestments",
        "cashAndShortTermInvestments",
        "netReceivables",
        "inventory",
        "otherCurrentAssets",
        "totalCurrentAssets",
        "propertyPlantEquipmentNet",
        "goodwill",
        "intangibleAssets",
        "goodwillAndIntangibleAssets",
        "longTermInvestments",
        "taxAssets",
        "otherNonCurrentAssets",
        "totalNonCurrentAssets",
        "otherAssets",
        "totalAssets",
        "accountPayables",
        "shortTermDebt",
        "taxPayables",
        "deferredRevenue",
        "otherCurrentLiabilities",
        "totalCurrentLiabilities",
        "longTermDebt",
        "deferredRevenueNonCurrent",
        "deferredTaxLiabilitiesNonCurrent",
        "otherNonCurrentLiabilities",
        "totalNonCurrentLiabilities",
        "otherLiabilities",
        "totalLiabilities",
        "preferredStock",
        "commonStock",
        "retainedEarnings",
        "accumulatedOtherComprehensiveIncomeLoss",
        "othertotalStockholdersEquity",
        "totalStockholdersEquity",
        "totalEquity",
        "totalLiabilitiesAndStockholdersEquity",
        "minorityInterest",
        "totalLiabilitiesAndTotalEquity",
        "totalInvestments",
        "totalDebt",
        "netDebt",
    ),
    *LINKS,
)

CASH_FLOW_COLUMNS = (
    *HEADER,
    *_amounts(
        "netIncome",
        "depreciationAndAmortization",
        "deferredIncomeTax",
        "stockBasedCompensation",
        "changeInWorkingCapital",
        "accountsReceivables",
        "inventory",
        "accountsPayables",
        "otherWorkingCapital",
        "otherNonCashItems",
        "netCashProvidedByOperatingActivities",
        "investmentsInPropertyPlantAndEquipment",
        "acquisitionsNet",
        "purchasesOfInvestments",
        "salesMaturitiesOfInvestments",
        "otherInvestingActivites",
        "netCashUsedForInvestingActivites",
        "debtRepayment",
        "commonStockIssued",
        "commonStockRepurchased",
        "dividendsPaid",
        "otherFinancingActivites",
        "netCashUsedProvidedByFinancingActivities",
        "effectOfForexChangesOnCash",
        "netChangeInCash",
        "cashAtEndOfPeriod",
        "cashAtBeginningOfPeriod",
        "operatingCashFlow",
        "capitalExpenditure",
        "freeCashFlow",
    ),
    *LINKS,
)


def _statement(name: str, path: str, columns: tuple[Column, ...]) -> RecordConfig:
    return RecordConfig(
        name=name,
        partition_mode=PartitionMode.BY_KEY,
        unique_key_columns=UNIQUE_KEY,
        normalizer=mapper(columns),
        endpoint=Endpoint(path, params={"period": "annual"}),
        ttl=STATEMENT_TTL,
        single_per_key=False,
        latest_field="date",
        field_order=field_order(columns),
    )


def income_statements() -> RecordConfig:
    return _statement(INCOME_STATEMENTS, "income-statement", INCOME_COLUMNS)


def balance_sheet_statements() -> RecordConfig:
    return _statement(BALANCE_SHEET_STATEMENTS, "balance-sheet-statement", BALANCE_SHEET_COLUMNS)


def cash_flow_statements() -> RecordConfig:
    return _statement(CASH_FLOW_STATEMENTS, "cash-flow-statement", CASH_FLOW_COLUMNS)
