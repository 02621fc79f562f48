import math


def page_meta(total: int, page: int, limit: int, item_count: int) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "totalItems": total,
        "itemCount": item_count,
        "itemsPerPage": limit,
        "totalPages": total_pages,
        "currentPage": page,
        "hasNextPage": page < total_pages,
        "hasPreviousPage": page > 1,
    }


def offset_for(page: int, limit: int) -> int:
    return (page - 1) * limit
