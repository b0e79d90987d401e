from asgiref.sync import async_to_sync
from celery import shared_task

from .container import build_services


@shared_task
def expire_suspensions():
    return async_to_sync(build_services().suspensions.expiration_sweep)().as_dict()


@shared_task
def expire_appeals():
    return async_to_sync(build_services().appeals.expiration_sweep)().as_dict()


@shared_task
def recover_reputations():
    return async_to_sync(build_services().reputation.recovery_sweep)().as_dict()


SWEEPS = {
    "suspensions": expire_suspensions,
    "appeals": expire_appeals,
    "reputation": recover_reputations,
}
