"""
Internal query endpoints.
Each endpoint calls this service's own query API over HTTP and returns
the result together with call metadata.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.services.self_query import SelfQueryConfig, SelfQueryGateway

router = APIRouter(prefix="/internal-query", tags=["Internal Queries"])


def get_self_query_gateway():
    """
    Dependency yielding a self-query gateway.
    The gateway's HTTP client is closed after the request.
    """
    gateway = SelfQueryGateway(SelfQueryConfig.from_settings(settings))
    try:
        yield gateway
    finally:
        gateway.close()


def _respond(envelope: dict) -> JSONResponse:
    # Failed calls are reported in the envelope, with a 500 status
    status_code = (
        status.HTTP_500_INTERNAL_SERVER_ERROR if envelope.get("error")
        else status.HTTP_200_OK
    )
    return JSONResponse(status_code=status_code, content=envelope)


@router.get("/accounts/{account_id}")
def query_account(
    account_id: int,
    gateway: SelfQueryGateway = Depends(get_self_query_gateway)
):
    """
    Fetch an account through this service's own GET /accounts/{id} endpoint.
    """
    return _respond(gateway.account(account_id))


@router.get("/active-accounts")
def query_active_accounts(gateway: SelfQueryGateway = Depends(get_self_query_gateway)):
    """
    Fetch active accounts through GET /accounts/active.
    """
    return _respond(gateway.active_accounts())


@router.get("/statistics")
def query_statistics(gateway: SelfQueryGateway = Depends(get_self_query_gateway)):
    """
    Fetch statistics through GET /accounts/statistics.
    """
    return _respond(gateway.statistics())


@router.get("/full-summary")
def query_full_summary(gateway: SelfQueryGateway = Depends(get_self_query_gateway)):
    """
    Build a summary from three internal calls: statistics, active accounts
    and statistics by type. Fails as a whole if any call fails.
    """
    return _respond(gateway.full_summary())
