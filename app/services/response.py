class ListResponseMixin:
    def list_response(self, *args, **kwargs) -> dict:
        items = self.list(*args, **kwargs)
        return {
            "items": items,
            "count": len(items),
            "limit": kwargs.get("limit"),
            "offset": kwargs.get("offset"),
        }
