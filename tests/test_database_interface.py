"""Tests for Database interface returning domain models."""

import pytest
from datetime import date, datetime, time, UTC
from decimal import Decimal

from cnabingest.domain import entities
from cnabingest.domain.entities import FileStatus, ParsedTransaction, StoreIdentity
from cnabingest.domain.errors import InvalidStatusTransitionError, StoreConflictError


def parsed(store: StoreIdentity, amount="100.00", occurred_on=date(2019, 3, 1), type_code=1):
    return ParsedTransaction(
        line_number=1,
        type_code=type_code,
        occurred_on=occurred_on,
        occurred_at=time(10, 0, 0),
        amount=Decimal(amount),
        customer_id="09620676017",
        card_id="4753****3153",
        store=store,
    )


@pytest.fixture
def file_id(temp_db):
    return temp_db.create_file(name="CNAB.txt", size=80, object_key="cnab/1/CNAB.txt")


class TestDatabaseInterface:
    """Tests to verify Database interface returns domain models."""

    def test_create_and_get_file(self, temp_db, file_id):
        """Test that a new file is Uploaded and returned as a domain File."""
        file = temp_db.get_file(file_id)

        assert isinstance(file, entities.File)
        assert file.status == FileStatus.UPLOADED
        assert isinstance(file.uploaded_at, datetime)
        assert file.processed_at is None

    def test_get_missing_file(self, temp_db):
        assert temp_db.get_file("missing") is None

    def test_transaction_types_are_seeded_once(self, temp_db):
        """Test that initialize_schema is idempotent."""
        temp_db.initialize_schema()

        types = temp_db.list_transaction_types()

        assert [t.code for t in types] == list(range(1, 10))
        assert all(isinstance(t, entities.TransactionType) for t in types)
        assert {t.sign for t in types} == {"+", "-"}

    def test_transition_file_is_conditional(self, temp_db, file_id):
        """Test that a transition only applies from the expected status."""
        assert temp_db.transition_file(file_id, FileStatus.UPLOADED, FileStatus.PROCESSING)
        assert not temp_db.transition_file(file_id, FileStatus.UPLOADED, FileStatus.PROCESSING)
        assert temp_db.get_file(file_id).status == FileStatus.PROCESSING

    def test_transition_file_records_rejection(self, temp_db, file_id):
        processed_at = datetime(2024, 6, 1, 12, tzinfo=UTC)
        temp_db.transition_file(file_id, FileStatus.UPLOADED, FileStatus.PROCESSING)

        temp_db.transition_file(
            file_id,
            FileStatus.PROCESSING,
            FileStatus.REJECTED,
            error_message="x" * 1500,
            processed_at=processed_at,
        )

        file = temp_db.get_file(file_id)
        assert file.status == FileStatus.REJECTED
        assert len(file.error_message) == 1000
        assert file.processed_at.replace(tzinfo=UTC) == processed_at

    def test_illegal_transition_raises(self, temp_db, file_id):
        with pytest.raises(InvalidStatusTransitionError):
            temp_db.transition_file(file_id, FileStatus.UPLOADED, FileStatus.PROCESSED)

    def test_list_files_by_status(self, temp_db, file_id):
        other = temp_db.create_file(name="other.txt", size=80, object_key="cnab/2/other.txt")
        temp_db.transition_file(other, FileStatus.UPLOADED, FileStatus.PROCESSING)

        assert [f.id for f in temp_db.list_files(status=FileStatus.PROCESSING)] == [other]
        assert len(temp_db.list_files()) == 2


class TestUnitOfWork:
    """Tests for the atomic persistence scope."""

    def test_commit_persists_stores_and_transactions(self, temp_db, file_id):
        identity = StoreIdentity(name="BAR DO JOAO", owner_name="JOAO MACEDO")

        with temp_db.unit_of_work() as uow:
            store = uow.add_store(identity)
            count = uow.add_transactions(file_id, [(parsed(identity), store.id)])
            uow.commit()

        assert count == 1
        assert isinstance(temp_db.get_store(store.id), entities.Store)
        assert temp_db.get_store_by_identity(identity).id == store.id
        transactions = temp_db.list_transactions(store_id=store.id)
        assert len(transactions) == 1
        assert isinstance(transactions[0], entities.Transaction)
        assert transactions[0].amount == Decimal("100.00")

    def test_close_without_commit_rolls_back(self, temp_db, file_id):
        identity = StoreIdentity(name="BAR DO JOAO", owner_name="JOAO MACEDO")

        with temp_db.unit_of_work() as uow:
            store = uow.add_store(identity)
            uow.add_transactions(file_id, [(parsed(identity), store.id)])
            uow.transition_file(file_id, FileStatus.UPLOADED, FileStatus.PROCESSING)

        assert temp_db.list_stores() == []
        assert temp_db.count_transactions() == 0
        assert temp_db.get_file(file_id).status == FileStatus.UPLOADED

    def test_duplicate_store_raises_conflict_and_keeps_transaction_usable(self, temp_db, file_id):
        identity = StoreIdentity(name="BAR DO JOAO", owner_name="JOAO MACEDO")
        with temp_db.unit_of_work() as uow:
            uow.add_store(identity)
            uow.commit()

        with temp_db.unit_of_work() as uow:
            with pytest.raises(StoreConflictError):
                uow.add_store(identity)
            existing = uow.find_store(identity)
            uow.add_transactions(file_id, [(parsed(identity), existing.id)])
            uow.commit()

        assert len(temp_db.list_stores()) == 1
        assert temp_db.count_transactions(file_id=file_id) == 1

    def test_same_name_different_owner_is_a_new_store(self, temp_db):
        with temp_db.unit_of_work() as uow:
            first = uow.add_store(StoreIdentity(name="BAR DO JOAO", owner_name="JOAO MACEDO"))
            second = uow.add_store(StoreIdentity(name="BAR DO JOAO", owner_name="MARIA JOSEFINA"))
            uow.commit()

        assert first.id != second.id
        assert len(temp_db.list_stores()) == 2

    def test_list_transactions_date_filters(self, temp_db, file_id):
        identity = StoreIdentity(name="Acme", owner_name="Jane")
        with temp_db.unit_of_work() as uow:
            store = uow.add_store(identity)
            uow.add_transactions(
                file_id,
                [
                    (parsed(identity, occurred_on=date(2024, 1, 10)), store.id),
                    (parsed(identity, occurred_on=date(2024, 2, 10)), store.id),
                    (parsed(identity, occurred_on=date(2024, 3, 10)), store.id),
                ],
            )
            uow.commit()

        result = temp_db.list_transactions(start_date=date(2024, 2, 1), end_date=date(2024, 2, 28))

        assert [t.occurred_on for t in result] == [date(2024, 2, 10)]
        assert temp_db.count_transactions(store_id=store.id) == 3
