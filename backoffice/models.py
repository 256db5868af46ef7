######################################################################
# Copyright 2016, 2024 John J. Rofrano. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
######################################################################

"""
Models for Benefits

A Benefit is a cashback offer shown to wallet users. ``position`` is the
priority order operators curate through reorder sessions; no two benefits
share a position.
"""

import logging
from datetime import date
from typing import List, Optional, Tuple, Union

from flask_sqlalchemy import SQLAlchemy

logger = logging.getLogger("flask.app")

# SQLAlchemy handle; initialized in init_db()
db = SQLAlchemy()

BENEFIT_TYPES = ("Cashback",)
STATUSES = ("active", "inactive")


class DataValidationError(Exception):
    """Used for data validation errors when deserializing or updating."""


class DatabaseError(Exception):
    """Used for database operation failures (commit/connection/constraint errors)."""


def _number(data: dict, name: str, minimum: float = 0, maximum: Optional[float] = None):
    """Reads a numeric field, rejecting booleans and out-of-range values"""
    value = data.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DataValidationError(f"Field '{name}' must be a number")
    if value < minimum or (maximum is not None and value > maximum):
        upper = "" if maximum is None else f" and {maximum}"
        raise DataValidationError(f"Field '{name}' must be between {minimum}{upper}")
    return value


class Benefit(db.Model):
    """
    Class that represents a Benefit
    """

    ##################################################
    # Table Schema
    ##################################################
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), nullable=True)
    version = db.Column(db.Integer, nullable=False, default=1)
    benefit_type = db.Column(db.String(32), nullable=False, default="Cashback")
    title = db.Column(db.String(127), nullable=False)
    description = db.Column(db.String(1024), nullable=False)
    extended_description = db.Column(db.Text, nullable=True)
    legal_text = db.Column(db.Text, nullable=False)
    cashback_percentage = db.Column(db.Float, nullable=False)
    purchase_cap = db.Column(db.Float, nullable=False)
    image = db.Column(db.String(512), nullable=True)
    position = db.Column(db.Integer, nullable=False, index=True)
    category = db.Column(db.String(63), nullable=False)
    mcc_codes = db.Column(db.JSON, nullable=False, default=list)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="active")
    # Auditing fields
    created_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)
    last_updated = db.Column(
        db.DateTime, default=db.func.now(), onupdate=db.func.now(), nullable=False
    )

    ##################################################
    # INSTANCE METHODS
    ##################################################

    def __repr__(self):
        return f"<Benefit {self.title} id=[{self.id}] position=[{self.position}]>"

    def create(self):
        """Creates this Benefit in the database."""
        logger.info("Creating %s", self.title)
        self.id = None  # make sure id is None so SQLAlchemy will assign one
        if self.position is None:
            self.position = Benefit.next_position()
        self._check_position()
        try:
            db.session.add(self)
            db.session.flush()
            if not self.code:
                self.code = f"BEN{self.id:03d}"
            db.session.commit()
        except Exception as e:  # pragma: no cover - exercised via exception tests
            db.session.rollback()
            logger.error("Error creating record: %s", self)
            raise DatabaseError(e) from e

    def update(self):
        """Updates this Benefit in the database."""
        logger.info("Saving %s", self.title)
        if not self.id:
            raise DataValidationError("Field 'id' is required for update")
        self._check_position()
        try:
            self.version = (self.version or 0) + 1
            db.session.commit()
        except Exception as e:  # pragma: no cover - exercised via exception tests
            db.session.rollback()
            logger.error("Error updating record: %s", self)
            raise DatabaseError(e) from e

    def delete(self):
        """Removes this Benefit from the data store."""
        logger.info("Deleting %s", self.title)
        try:
            db.session.delete(self)
            db.session.commit()
        except Exception as e:  # pragma: no cover - exercised via exception tests
            db.session.rollback()
            logger.error("Error deleting record: %s", self)
            raise DatabaseError(e) from e

    def _check_position(self):
        if Benefit.position_taken(self.position, exclude_id=self.id):
            raise DataValidationError(
                f"Position {self.position} is already held by another benefit"
            )

    def serialize(self) -> dict:
        """Serializes a Benefit into a dictionary."""
        return {
            "id": self.id,
            "code": self.code,
            "version": self.version,
            "benefit_type": self.benefit_type,
            "title": self.title,
            "description": self.description,
            "extended_description": self.extended_description,
            "legal_text": self.legal_text,
            "cashback_percentage": self.cashback_percentage,
            "purchase_cap": self.purchase_cap,
            "image": self.image,
            "position": self.position,
            "category": self.category,
            "mcc_codes": list(self.mcc_codes or []),
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "status": self.status,
        }

    def deserialize(self, data: dict):
        """
        Deserializes a Benefit from a dictionary.

        Args:
            data (dict): a dictionary containing the benefit data
        """
        try:
            self.title = data["title"]
            self.description = data["description"]
            self.legal_text = data["legal_text"]
            self.category = data["category"]
            self.extended_description = data.get("extended_description")
            self.image = data.get("image")

            self.benefit_type = data.get("benefit_type", "Cashback")
            if self.benefit_type not in BENEFIT_TYPES:
                raise DataValidationError(
                    f"Field 'benefit_type' must be one of {', '.join(BENEFIT_TYPES)}"
                )

            self.status = data.get("status", "active")
            if self.status not in STATUSES:
                raise DataValidationError(f"Field 'status' must be one of {', '.join(STATUSES)}")

            self.cashback_percentage = _number(data, "cashback_percentage", 0, 100)
            self.purchase_cap = _number(data, "purchase_cap", 0)

            position = data.get("position")
            if position is not None and (isinstance(position, bool) or not isinstance(position, int)):
                raise DataValidationError("Field 'position' must be an integer")
            if position is not None:
                self.position = position

            mcc_codes = data.get("mcc_codes", [])
            if not isinstance(mcc_codes, list) or not all(isinstance(c, str) for c in mcc_codes):
                raise DataValidationError("Field 'mcc_codes' must be a list of strings")
            self.mcc_codes = mcc_codes

            try:
                self.start_date = date.fromisoformat(data["start_date"])
            except (TypeError, ValueError) as e:
                raise DataValidationError(
                    "Field 'start_date' must be an ISO date (YYYY-MM-DD)"
                ) from e

            try:
                self.end_date = date.fromisoformat(data["end_date"])
            except (TypeError, ValueError) as e:
                raise DataValidationError(
                    "Field 'end_date' must be an ISO date (YYYY-MM-DD)"
                ) from e

            if self.end_date < self.start_date:
                raise DataValidationError("Field 'end_date' must not be before 'start_date'")

        except AttributeError as error:
            raise DataValidationError("Invalid attribute: " + error.args[0]) from error
        except KeyError as error:
            missing = error.args[0]
            raise DataValidationError(f"Invalid benefit: missing '{missing}'") from error
        except TypeError as error:
            raise DataValidationError(
                "Invalid benefit: request body contained malformed or invalid data"
            ) from error

        return self

    ##################################################
    # CLASS METHODS
    ##################################################

    @classmethod
    def all(cls) -> List["Benefit"]:
        """Returns all Benefits in position order."""
        logger.info("Processing all Benefits")
        return list(cls.query.order_by(cls.position).all())

    @classmethod
    def find(cls, by_id: Union[int, str]) -> Optional["Benefit"]:
        """Finds a Benefit by its ID (single object or None)."""
        logger.info("Processing lookup for id %s ...", by_id)
        try:
            bid = int(by_id)
        except (TypeError, ValueError):
            return None
        return cls.query.session.get(cls, bid)

    @classmethod
    def find_by_status(cls, status: str) -> List["Benefit"]:
        """Returns all Benefits with the given status, in position order."""
        logger.info("Processing status query for %s ...", status)
        return list(cls.query.filter(cls.status == status).order_by(cls.position).all())

    @classmethod
    def search(
        cls,
        title: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        size: int = 25,
    ) -> Tuple[List["Benefit"], int]:
        """Returns one page of Benefits matching the filters and the match count

        ``title`` is a case-insensitive substring, ``status`` an exact value.
        Results are in position order.
        """
        logger.info("Processing benefit search title=%s status=%s page=%s", title, status, page)
        query = cls.query
        if title:
            query = query.filter(cls.title.ilike(f"%{title}%"))
        if status:
            query = query.filter(cls.status == status)
        total = query.count()
        items = query.order_by(cls.position).offset((page - 1) * size).limit(size).all()
        return list(items), total

    @classmethod
    def next_position(cls) -> int:
        """Position just after the last benefit (1 for an empty catalog)."""
        highest = db.session.query(db.func.max(cls.position)).scalar()
        return 1 if highest is None else highest + 1

    @classmethod
    def position_taken(cls, position: int, exclude_id: Optional[int] = None) -> bool:
        query = cls.query.filter(cls.position == position)
        if exclude_id is not None:
            query = query.filter(cls.id != exclude_id)
        return query.first() is not None
