# Database modules

from .addresses import address_book, AddressBook
from .orders import order_records, OrderRecordDatabase

__all__ = [
    "address_book",
    "AddressBook",
    "order_records",
    "OrderRecordDatabase",
]
