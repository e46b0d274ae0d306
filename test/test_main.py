"""Tests for the command line entry point."""

import logging
from unittest.mock import AsyncMock, patch

import pytest

from swap_relayer import main


class TestMain:
    """Test suite for main()."""

    def test_setup_logging_level(self):
        with patch("swap_relayer.main.logging.basicConfig") as basic_config:
            main.setup_logging("debug")

        assert basic_config.call_args.kwargs["level"] == logging.DEBUG

    @pytest.mark.asyncio
    async def test_configuration_error_exits(self):
        """Test that missing environment variables end the process with status 1."""
        with patch("sys.argv", ["swap-relayer"]), patch.dict("os.environ", {}, clear=True):
            with pytest.raises(SystemExit) as exc_info:
                await main.main()

        assert exc_info.value.code == 1

    @pytest.mark.asyncio
    async def test_discovery_flag_reaches_relayer(self):
        with patch("sys.argv", ["swap-relayer", "--discovery", "logs"]), \
                patch.object(main.SwapRelayer, "from_env") as from_env:
            from_env.return_value.run = AsyncMock()
            await main.main()

        from_env.assert_called_once_with(discovery_mode="logs")
        from_env.return_value.run.assert_awaited_once()
