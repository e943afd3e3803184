from traffic_spec.generator.paths import normalize, path_parameters

RULES = {
    r"^https://api\.x/api": "",
    r"/accounts/\d+/": "/accounts/{account_id}/",
    r"/by_name/[^/{}]+/": "/by_name/{dataset_name}/",
    r".*/logout/$": "",
}


class TestNormalize:
    def test_collapses_ids_into_template(self):
        assert normalize("https://api.x/api/accounts/42/", RULES) == "/accounts/{account_id}/"

    def test_distinct_urls_share_template(self):
        assert normalize("https://api.x/api/accounts/42/", RULES) == normalize("https://api.x/api/accounts/43/", RULES)

    def test_collapses_by_name_segment(self):
        assert normalize("https://api.x/api/datasets/by_name/sales 2024/", RULES) == "/datasets/by_name/{dataset_name}/"

    def test_empty_result_drops_url(self):
        assert normalize("https://api.x/api/logout/", RULES) == ""

    def test_query_string_is_discarded(self):
        assert normalize("https://api.x/api/accounts/?limit=10", RULES) == "/accounts/"

    def test_host_is_discarded_without_rule(self):
        assert normalize("https://api.x/accounts/42/", {r"/accounts/\d+/": "/accounts/{account_id}/"}) == "/accounts/{account_id}/"

    def test_idempotent_on_templates(self):
        for template in ["/accounts/{account_id}/", "/datasets/by_name/{dataset_name}/", "/accounts/"]:
            assert normalize(template, RULES) == template
            assert normalize(normalize(template, RULES), RULES) == template

    def test_rules_apply_in_order(self):
        rules = {"a": "b", "b": "c"}
        assert normalize("/a/", rules) == "/c/"


class TestPathParameters:
    def test_no_parameters(self):
        assert path_parameters("/accounts/") == []

    def test_id_parameter_description(self):
        params = path_parameters("/accounts/{account_id}/")
        assert params == [{
            "description": "Unique ID of the account you are working with",
            "in": "path",
            "name": "account_id",
            "required": True,
            "schema": {"type": "string"},
        }]

    def test_multiple_parameters_in_order(self):
        params = path_parameters("/datasets/{dataset_id}/variables/{variable_id}/")
        assert [p["name"] for p in params] == ["dataset_id", "variable_id"]
        assert all(p["required"] and p["in"] == "path" for p in params)

    def test_non_id_parameter(self):
        params = path_parameters("/datasets/by_name/{dataset_name}/")
        assert params[0]["description"] == "Unique ID of the dataset_name you are working with"
