import logging
import secrets
from typing import NoReturn, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from csrf import generate_csrf_token, validate_csrf_token
from csv_utils import export_expenses
from database import get_db
from periods import Month, resolve_month
from recurrence import local_today
from scheduler import SchedulerManager
from schemas import (
    AccountIn,
    AccountOut,
    AreaIn,
    AreaOut,
    BudgetIn,
    BudgetProgressOut,
    BudgetSummaryOut,
    CardIn,
    CardOut,
    CategoryIn,
    CategoryOut,
    ExpenseIn,
    ExpenseOut,
    ExpenseStatusIn,
    IncomeIn,
    IncomeOut,
    InstanceOut,
    InvoiceOut,
    InvoicePaymentIn,
    LimitOut,
)
from services import (
    AccountService,
    AreaService,
    BudgetService,
    CardService,
    CategoryService,
    ExpenseService,
    IncomeService,
    InvoiceService,
    NotFoundError,
    ReportService,
    SearchService,
    get_current_user_id,
)
from sessions import InactivityMonitor, SessionState

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Session-Id"
CSRF_HEADER = "X-CSRF-Token"

app = FastAPI(title="Household Finance")

monitor = InactivityMonitor()
scheduler_manager = SchedulerManager(monitor)


@app.on_event("startup")
def startup_event():
    scheduler_manager.start()


@app.on_event("shutdown")
def shutdown_event():
    scheduler_manager.stop()


@app.middleware("http")
async def track_session_activity(request: Request, call_next):
    session_id = request.headers.get(SESSION_HEADER)
    if session_id and request.url.path != "/api/session":
        if monitor.state(session_id) == SessionState.expired:
            monitor.forget(session_id)
            return JSONResponse(status_code=401, content={"detail": "Session expired"})
        monitor.touch(session_id)
    return await call_next(request)


def require_csrf(request: Request) -> None:
    token = request.headers.get(CSRF_HEADER)
    session_id = request.headers.get(SESSION_HEADER)
    if not validate_csrf_token(token, get_current_user_id(), session_id):
        raise HTTPException(status_code=400, detail="Invalid CSRF token")


def raise_for(exc: ValueError) -> NoReturn:
    status = 404 if isinstance(exc, NotFoundError) else 400
    raise HTTPException(status_code=status, detail=str(exc)) from exc


def month_from_request(request: Request) -> Month:
    try:
        return resolve_month(request.query_params.get("month"), today=local_today())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def year_from_request(request: Request) -> int:
    raw = request.query_params.get("year")
    if not raw:
        return local_today().year
    try:
        return int(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid year") from exc


# session


@app.post("/api/session")
def start_session():
    session_id = secrets.token_urlsafe(24)
    monitor.touch(session_id)
    return {
        "session_id": session_id,
        "csrf_token": generate_csrf_token(get_current_user_id(), session_id),
        "expires_at": monitor.expires_at(session_id),
    }


@app.get("/api/session")
def session_state(request: Request):
    session_id = request.headers.get(SESSION_HEADER)
    if not session_id:
        raise HTTPException(status_code=400, detail="Missing session id")
    return {
        "state": monitor.state(session_id).value,
        "expires_at": monitor.expires_at(session_id),
    }


@app.delete("/api/session", status_code=204)
def end_session(request: Request):
    session_id = request.headers.get(SESSION_HEADER)
    if session_id:
        monitor.forget(session_id)
    return Response(status_code=204)


@app.get("/api/csrf")
def csrf_token(request: Request):
    session_id = request.headers.get(SESSION_HEADER)
    return {"csrf_token": generate_csrf_token(get_current_user_id(), session_id)}


# accounts


@app.get("/api/accounts")
def list_accounts(db: Session = Depends(get_db)):
    return [AccountOut.model_validate(a) for a in AccountService(db).list_all()]


@app.post("/api/accounts", status_code=201, dependencies=[Depends(require_csrf)])
def create_account(data: AccountIn, db: Session = Depends(get_db)):
    return AccountOut.model_validate(AccountService(db).create(data))


@app.put("/api/accounts/{account_id}", dependencies=[Depends(require_csrf)])
def update_account(account_id: int, data: AccountIn, db: Session = Depends(get_db)):
    try:
        account = AccountService(db).update(account_id, data)
    except ValueError as exc:
        raise_for(exc)
    return AccountOut.model_validate(account)


@app.delete(
    "/api/accounts/{account_id}", status_code=204, dependencies=[Depends(require_csrf)]
)
def delete_account(account_id: int, db: Session = Depends(get_db)):
    try:
        AccountService(db).delete(account_id)
    except ValueError as exc:
        raise_for(exc)
    return Response(status_code=204)


# cards


@app.get("/api/cards")
def list_cards(db: Session = Depends(get_db)):
    return [CardOut.model_validate(c) for c in CardService(db).list_all()]


@app.post("/api/cards", status_code=201, dependencies=[Depends(require_csrf)])
def create_card(data: CardIn, db: Session = Depends(get_db)):
    try:
        card = CardService(db).create(data)
    except ValueError as exc:
        raise_for(exc)
    return CardOut.model_validate(card)


@app.put("/api/cards/{card_id}", dependencies=[Depends(require_csrf)])
def update_card(card_id: int, data: CardIn, db: Session = Depends(get_db)):
    try:
        card = CardService(db).update(card_id, data)
    except ValueError as exc:
        raise_for(exc)
    return CardOut.model_validate(card)


@app.delete(
    "/api/cards/{card_id}", status_code=204, dependencies=[Depends(require_csrf)]
)
def delete_card(card_id: int, db: Session = Depends(get_db)):
    try:
        CardService(db).delete(card_id)
    except ValueError as exc:
        raise_for(exc)
    return Response(status_code=204)


@app.get("/api/cards/{card_id}/limit")
def card_limit(card_id: int, db: Session = Depends(get_db)):
    try:
        summary = CardService(db).limit_summary(card_id)
    except ValueError as exc:
        raise_for(exc)
    return LimitOut.model_validate(summary)


# areas and categories


@app.get("/api/areas")
def list_areas(db: Session = Depends(get_db)):
    return [AreaOut.model_validate(a) for a in AreaService(db).list_all()]


@app.post("/api/areas", status_code=201, dependencies=[Depends(require_csrf)])
def create_area(data: AreaIn, db: Session = Depends(get_db)):
    try:
        area = AreaService(db).create(data)
    except ValueError as exc:
        raise_for(exc)
    return AreaOut.model_validate(area)


@app.delete(
    "/api/areas/{area_id}", status_code=204, dependencies=[Depends(require_csrf)]
)
def delete_area(area_id: int, db: Session = Depends(get_db)):
    try:
        AreaService(db).delete(area_id)
    except ValueError as exc:
        raise_for(exc)
    return Response(status_code=204)


@app.get("/api/categories")
def list_categories(area_id: Optional[int] = None, db: Session = Depends(get_db)):
    categories = CategoryService(db).list_all(area_id=area_id)
    return [CategoryOut.model_validate(c) for c in categories]


@app.post("/api/categories", status_code=201, dependencies=[Depends(require_csrf)])
def create_category(data: CategoryIn, db: Session = Depends(get_db)):
    try:
        category = CategoryService(db).create(data)
    except ValueError as exc:
        raise_for(exc)
    return CategoryOut.model_validate(category)


@app.delete(
    "/api/categories/{category_id}",
    status_code=204,
    dependencies=[Depends(require_csrf)],
)
def delete_category(category_id: int, db: Session = Depends(get_db)):
    try:
        CategoryService(db).delete(category_id)
    except ValueError as exc:
        raise_for(exc)
    return Response(status_code=204)


# incomes


@app.get("/api/incomes")
def list_incomes(request: Request, db: Session = Depends(get_db)):
    month = month_from_request(request)
    incomes = IncomeService(db).list_for_month(month)
    return [IncomeOut.model_validate(i) for i in incomes]


@app.post("/api/incomes", status_code=201, dependencies=[Depends(require_csrf)])
def create_income(data: IncomeIn, db: Session = Depends(get_db)):
    try:
        income = IncomeService(db).create(data)
    except ValueError as exc:
        raise_for(exc)
    return IncomeOut.model_validate(income)


@app.put("/api/incomes/{income_id}", dependencies=[Depends(require_csrf)])
def update_income(income_id: int, data: IncomeIn, db: Session = Depends(get_db)):
    try:
        income = IncomeService(db).update(income_id, data)
    except ValueError as exc:
        raise_for(exc)
    return IncomeOut.model_validate(income)


@app.delete(
    "/api/incomes/{income_id}", status_code=204, dependencies=[Depends(require_csrf)]
)
def delete_income(income_id: int, db: Session = Depends(get_db)):
    try:
        IncomeService(db).delete(income_id)
    except ValueError as exc:
        raise_for(exc)
    return Response(status_code=204)


# expenses


@app.get("/api/expenses")
def list_expenses(request: Request, db: Session = Depends(get_db)):
    month = month_from_request(request)
    return [InstanceOut.model_validate(i) for i in ExpenseService(db).expanded(month)]


@app.get("/api/expenses/export.csv")
def export_expenses_endpoint(request: Request, db: Session = Depends(get_db)):
    month = month_from_request(request)
    instances = ExpenseService(db).expanded(month)
    content = export_expenses(
        instances,
        category_names={c.id: c.name for c in CategoryService(db).list_all()},
        card_names={c.id: c.name for c in CardService(db).list_all()},
    )
    filename = f"expenses-{month.slug}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/api/expenses/{instance_id}")
def get_expense_instance(instance_id: str, db: Session = Depends(get_db)):
    try:
        instance = ExpenseService(db).get_instance(instance_id)
    except ValueError as exc:
        raise_for(exc)
    return InstanceOut.model_validate(instance)


@app.post("/api/expenses", status_code=201, dependencies=[Depends(require_csrf)])
def create_expense(data: ExpenseIn, db: Session = Depends(get_db)):
    try:
        expense = ExpenseService(db).create(data)
    except ValueError as exc:
        raise_for(exc)
    return ExpenseOut.model_validate(expense)


@app.put("/api/expenses/{expense_id}", dependencies=[Depends(require_csrf)])
def update_expense(expense_id: int, data: ExpenseIn, db: Session = Depends(get_db)):
    try:
        expense = ExpenseService(db).update(expense_id, data)
    except ValueError as exc:
        raise_for(exc)
    return ExpenseOut.model_validate(expense)


@app.delete(
    "/api/expenses/{expense_id}", status_code=204, dependencies=[Depends(require_csrf)]
)
def delete_expense(expense_id: int, db: Session = Depends(get_db)):
    try:
        ExpenseService(db).delete(expense_id)
    except ValueError as exc:
        raise_for(exc)
    return Response(status_code=204)


@app.post(
    "/api/expenses/{instance_id}/status", dependencies=[Depends(require_csrf)]
)
def set_expense_status(
    instance_id: str, data: ExpenseStatusIn, db: Session = Depends(get_db)
):
    try:
        expense = ExpenseService(db).set_status(
            instance_id, data.status, data.payment_date
        )
    except ValueError as exc:
        raise_for(exc)
    return ExpenseOut.model_validate(expense)


# invoices


@app.get("/api/invoices")
def list_invoices(card_id: Optional[int] = None, db: Session = Depends(get_db)):
    try:
        invoices = InvoiceService(db).invoices(card_id)
    except ValueError as exc:
        raise_for(exc)
    return [InvoiceOut.model_validate(i) for i in invoices]


@app.get("/api/invoices/{card_id}/{year}/{month}")
def invoice_detail(card_id: int, year: int, month: int, db: Session = Depends(get_db)):
    service = InvoiceService(db)
    try:
        invoice = service.get_invoice(card_id, month, year)
        expenses = service.invoice_expenses(card_id, month, year)
    except ValueError as exc:
        raise_for(exc)
    return {
        "invoice": InvoiceOut.model_validate(invoice),
        "expenses": [InstanceOut.model_validate(e) for e in expenses],
    }


@app.post(
    "/api/invoices/{card_id}/{year}/{month}/pay",
    dependencies=[Depends(require_csrf)],
)
def pay_invoice(
    card_id: int,
    year: int,
    month: int,
    data: InvoicePaymentIn,
    db: Session = Depends(get_db),
):
    try:
        invoice = InvoiceService(db).pay_invoice(
            card_id, month, year, data.paid_date, data.account_id
        )
    except ValueError as exc:
        raise_for(exc)
    return InvoiceOut.model_validate(invoice)


# budgets


@app.get("/api/budgets")
def budgets_for_month(request: Request, db: Session = Depends(get_db)):
    month = month_from_request(request)
    service = BudgetService(db)
    return {
        "month": month.slug,
        "budgets": [
            BudgetProgressOut.model_validate(row)
            for row in service.progress_for_month(month)
        ],
        "summary": BudgetSummaryOut.model_validate(service.summary_for_month(month)),
    }


@app.post("/api/budgets", status_code=201, dependencies=[Depends(require_csrf)])
def upsert_budget(data: BudgetIn, db: Session = Depends(get_db)):
    try:
        budget = BudgetService(db).upsert(data)
    except ValueError as exc:
        raise_for(exc)
    return {
        "id": budget.id,
        "category_id": budget.category_id,
        "year": budget.year,
        "month": budget.month,
        "amount_cents": budget.amount_cents,
    }


@app.delete(
    "/api/budgets/{budget_id}", status_code=204, dependencies=[Depends(require_csrf)]
)
def delete_budget(budget_id: int, db: Session = Depends(get_db)):
    try:
        BudgetService(db).delete(budget_id)
    except ValueError as exc:
        raise_for(exc)
    return Response(status_code=204)


# reports


@app.get("/api/reports/summary")
def report_summary(request: Request, db: Session = Depends(get_db)):
    month = month_from_request(request)
    summary = ReportService(db).month_summary(month)

    def totals(t):
        return {
            "income_cents": t.income_cents,
            "expense_cents": t.expense_cents,
            "scheduled_cents": t.scheduled_cents,
            "balance_cents": t.balance_cents,
        }

    return {
        "month": month.slug,
        "current": totals(summary.current),
        "previous": totals(summary.previous),
    }


@app.get("/api/reports/daily")
def report_daily(request: Request, db: Session = Depends(get_db)):
    month = month_from_request(request)
    return [
        {
            "date": row.date,
            "income_cents": row.income_cents,
            "expense_cents": row.expense_cents,
            "balance_cents": row.balance_cents,
        }
        for row in ReportService(db).daily_balances(month)
    ]


@app.get("/api/reports/incomes-by-origin")
def report_incomes_by_origin(request: Request, db: Session = Depends(get_db)):
    return ReportService(db).incomes_by_origin(year_from_request(request))


@app.get("/api/reports/expenses-by-area")
def report_expenses_by_area(request: Request, db: Session = Depends(get_db)):
    return ReportService(db).expenses_by_area(year_from_request(request))


@app.get("/api/search")
def search(q: str = "", limit: int = 20, db: Session = Depends(get_db)):
    results = SearchService(db).search(q, limit=max(1, min(limit, 100)))
    return [
        {
            "kind": r.kind,
            "id": r.id,
            "label": r.label,
            "score": r.score,
            **r.extra,
        }
        for r in results
    ]


def main():
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
