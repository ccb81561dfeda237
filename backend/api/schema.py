"""POST /api/schema — introspect a database and return its tables."""
import logging
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from core.db_connector import SchemaIntrospector
from models.connection import ConnectionRequest
from models.table import TableMetadata

router = APIRouter()
logger = logging.getLogger(__name__)


class TableSchema(BaseModel):
    table: TableMetadata
    related: list[str]


class SchemaResponse(BaseModel):
    dialect: str
    tables: list[TableSchema]


@router.post("/schema", response_model=SchemaResponse)
def describe_schema(req: ConnectionRequest):
    try:
        introspector = SchemaIntrospector.from_request(req)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    with introspector:
        try:
            tables = [
                TableSchema(table=introspector.describe_table(name), related=introspector.find_related_tables(name))
                for name in introspector.list_tables()
            ]
        except SQLAlchemyError as e:
            logger.exception("Schema introspection failed")
            raise HTTPException(status_code=500, detail=f"Introspection error: {e}")
        return SchemaResponse(dialect=introspector.engine.dialect.name, tables=tables)
