import inspect

from app import evaluate_pipeline


class TestPipelineEndpoint:
    """Test POST /pipeline/evaluate"""

    def test_count_evens_doubled(self, client):
        response = client.post("/pipeline/evaluate", json={
            "source": list(range(1, 11)),
            "stages": [
                {"type": "filter", "function": "is_even"},
                {"type": "map", "function": "double"}
            ],
            "terminal": "count"
        })

        assert response.status_code == 200
        data = response.json()
        assert data["result"] == 5
        assert data["present"] is True
        assert data["stages_applied"] == ["filter", "map"]
        assert "execution_time_ms" in data["performance"]

    def test_reduce_sum(self, client):
        response = client.post("/pipeline/evaluate", json={
            "source": list(range(1, 11)),
            "terminal": "reduce",
            "identity": 0,
            "combiner": "add"
        })

        assert response.status_code == 200
        assert response.json()["result"] == 55

    def test_distinct_sorted_skip(self, client):
        response = client.post("/pipeline/evaluate", json={
            "source": [4, 1, 4, 9, 1, 7, 3],
            "stages": [
                {"type": "distinct"},
                {"type": "sorted"},
                {"type": "skip", "count": 1}
            ]
        })

        assert response.status_code == 200
        assert response.json()["result"] == [3, 4, 7, 9]

    def test_find_first_absent(self, client):
        response = client.post("/pipeline/evaluate", json={
            "source": [1, 3, 5],
            "stages": [{"type": "filter", "function": "is_even"}],
            "terminal": "find_first"
        })

        assert response.status_code == 200
        data = response.json()
        assert data["present"] is False
        assert data["result"] is None

    def test_max_of_strings(self, client):
        response = client.post("/pipeline/evaluate", json={
            "source": ["John", "Jane", "Jack", "Doe"],
            "terminal": "max"
        })

        assert response.json()["result"] == "John"

    def test_to_set_is_sorted_list(self, client):
        response = client.post("/pipeline/evaluate", json={
            "source": [5, 2, 5, 2, 8],
            "terminal": "to_set"
        })

        assert response.json()["result"] == [2, 5, 8]

    def test_summarizing(self, client):
        response = client.post("/pipeline/evaluate", json={
            "source": list(range(1, 11)),
            "terminal": "summarizing",
            "key_function": "identity"
        })

        result = response.json()["result"]
        assert result["count"] == 10
        assert result["sum"] == 55
        assert result["average"] == 5.5

    def test_parallel_for_each(self, client):
        response = client.post("/pipeline/evaluate", json={
            "source": list(range(1, 11)),
            "terminal": "for_each",
            "parallel": True
        })

        assert response.status_code == 200
        assert sorted(response.json()["result"]) == list(range(1, 11))

    def test_unknown_function_is_bad_request(self, client):
        response = client.post("/pipeline/evaluate", json={
            "source": [1, 2, 3],
            "stages": [{"type": "map", "function": "no_such_function"}]
        })

        assert response.status_code == 400
        assert "no_such_function" in response.json()["detail"]

    def test_duplicate_map_key_is_bad_request(self, client):
        response = client.post("/pipeline/evaluate", json={
            "source": [1, 1],
            "terminal": "to_map",
            "value_function": "square"
        })

        assert response.status_code == 400

    def test_to_map_values(self, client):
        response = client.post("/pipeline/evaluate", json={
            "source": ["John", "Doe"],
            "terminal": "to_map",
            "value_function": "length"
        })

        assert response.status_code == 200
        assert response.json()["result"] == {"John": 4, "Doe": 3}

    def test_to_map_without_value_function_is_rejected(self, client):
        response = client.post("/pipeline/evaluate", json={
            "source": [1, 2],
            "terminal": "to_map",
            "key_function": "square"
        })

        assert response.status_code == 422

    def test_flat_map_expansion_over_limit_is_bad_request(self, client):
        """One element cannot blow past the element budget"""
        response = client.post("/pipeline/evaluate", json={
            "source": [2_000_000],
            "stages": [{"type": "flat_map", "function": "range_to"}],
            "terminal": "count"
        })

        assert response.status_code == 400
        assert "100000" in response.json()["detail"]

    def test_flat_map_within_limit(self, client):
        response = client.post("/pipeline/evaluate", json={
            "source": [3, 2],
            "stages": [{"type": "flat_map", "function": "range_to"}]
        })

        assert response.status_code == 200
        data = response.json()
        assert data["result"] == [0, 1, 2, 0, 1]
        assert data["stages_applied"] == ["flat_map"]

    def test_unknown_peek_action_is_bad_request(self, client):
        response = client.post("/pipeline/evaluate", json={
            "source": [1, 2, 3],
            "stages": [{"type": "peek", "function": "anything"}]
        })

        assert response.status_code == 400

    def test_evaluate_runs_off_the_event_loop(self):
        assert not inspect.iscoroutinefunction(evaluate_pipeline)

    def test_stage_without_function_is_rejected(self, client):
        response = client.post("/pipeline/evaluate", json={
            "source": [1, 2, 3],
            "stages": [{"type": "filter"}]
        })

        assert response.status_code == 422

    def test_reduce_without_combiner_is_rejected(self, client):
        response = client.post("/pipeline/evaluate", json={
            "source": [1, 2, 3],
            "terminal": "reduce"
        })

        assert response.status_code == 422


class TestAuxiliaryEndpoints:
    """Test function listing, time, file search and health"""

    def test_functions_listing(self, client):
        data = client.get("/pipeline/functions").json()

        assert "is_even" in data["predicates"]
        assert "double" in data["transforms"]
        assert "add" in data["combiners"]

    def test_time_now(self, client):
        data = client.get("/time/now").json()

        assert data["pattern"] == "yyyy-MM-dd HH:mm:ss"
        assert len(data["formatted"]) == 19

    def test_time_now_custom_pattern(self, client):
        data = client.get("/time/now", params={"pattern": "yyyy"}).json()
        assert len(data["formatted"]) == 4

    def test_grep_existing_file(self, client, text_file):
        response = client.post("/files/grep", json={"path": str(text_file), "needle": "Java"})

        assert response.status_code == 200
        assert len(response.json()["lines"]) == 2

    def test_grep_missing_file_is_not_fatal(self, client, tmp_path):
        response = client.post("/files/grep", json={"path": str(tmp_path / "nope.txt"), "needle": "Java"})

        assert response.status_code == 200
        data = response.json()
        assert data["error"].startswith("Error reading file:")
        assert data["error_kind"] == "not_found"

    def test_health(self, client):
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert "memory_total_mb" in data["system"]
