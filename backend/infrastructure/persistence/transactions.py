"""
Transaction management backed by the Django ORM.
"""

from django.db import transaction

from application.manufacturing.ports import TransactionManager


class DjangoTransactionManager(TransactionManager):
    """
    Runs each use case inside ``transaction.atomic``.

    Reads made by the repositories inside the block form the snapshot the
    domain service decides on; pair with row locks (``select_for_update``)
    on the order to serialize concurrent transitions.
    """

    def __init__(self, using: str = "default"):
        self.using = using

    def atomic(self):
        return transaction.atomic(using=self.using)
