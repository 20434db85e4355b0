from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    email = serializers.CharField()
    password = serializers.CharField(trim_whitespace=False)

    def validate_email(self, value):
        return value.strip().lower()


class RegisterSerializer(serializers.Serializer):
    """Public registration. Admin accounts come from ``manage.py create_admin``."""
    email = serializers.EmailField(max_length=255)
    password = serializers.CharField(min_length=6, trim_whitespace=False)
    first_name = serializers.CharField(max_length=50)
    last_name = serializers.CharField(max_length=50)
    role = serializers.ChoiceField(choices=['student', 'employer'])
    company_name = serializers.CharField(max_length=100, required=False, allow_blank=True)

    def validate_email(self, value):
        return value.strip().lower()

    def validate(self, data):
        if data['role'] == 'employer' and not data.get('company_name', '').strip():
            raise serializers.ValidationError({'company_name': ['Company name is required for employers.']})
        return data
