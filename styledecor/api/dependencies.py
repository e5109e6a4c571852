from fastapi import HTTPException, Request, status

from styledecor.domain.exceptions import PaymentGatewayError
from styledecor.infrastructure.payments.razorpay_gateway import RazorpayGateway


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_payment_gateway() -> RazorpayGateway:
    try:
        return RazorpayGateway.from_env()
    except PaymentGatewayError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
