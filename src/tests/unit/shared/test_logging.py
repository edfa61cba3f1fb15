"""Unit tests for structured logging helpers."""

from shared.observability import OperationContext, node_id_var, operation_id_var


class TestOperationContext:
    def test_sets_and_resets(self) -> None:
        with OperationContext(operation_id="reconcile-1", node_id="node-a"):
            assert operation_id_var.get() == "reconcile-1"
            assert node_id_var.get() == "node-a"

        assert operation_id_var.get() is None
        assert node_id_var.get() is None

    async def test_async_nesting(self) -> None:
        async with OperationContext(operation_id="outer"):
            async with OperationContext(operation_id="inner", node_id="node-b"):
                assert operation_id_var.get() == "inner"
            assert operation_id_var.get() == "outer"
            assert node_id_var.get() is None
