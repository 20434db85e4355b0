from rest_framework import serializers


class StudentProfileUpdateSerializer(serializers.Serializer):
    """Fields a student may change on their own profile. Anything else is dropped."""
    institution = serializers.CharField(max_length=255, required=False, allow_blank=True)
    program = serializers.CharField(max_length=255, required=False, allow_blank=True)
    year_of_study = serializers.IntegerField(min_value=1, max_value=5, required=False, allow_null=True)
    bio = serializers.CharField(required=False, allow_blank=True)
    is_profile_visible = serializers.BooleanField(required=False)
    skills = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False)


class EmployerProfileUpdateSerializer(serializers.Serializer):
    company_name = serializers.CharField(max_length=100, required=False)
    industry = serializers.CharField(max_length=100, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    location = serializers.CharField(max_length=255, required=False, allow_blank=True)
    website = serializers.CharField(max_length=255, required=False, allow_blank=True)
    contact_phone = serializers.RegexField(r'^\+?[\d\s-]{6,20}$', max_length=20, required=False, allow_blank=True)


class SkillsInputSerializer(serializers.Serializer):
    skill_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False, default=list)
    skill_names = serializers.ListField(child=serializers.CharField(max_length=100), required=False, default=list)

    def validate(self, data):
        if not data['skill_ids'] and not data['skill_names']:
            raise serializers.ValidationError({'skills': ['Provide skill_ids or skill_names.']})
        return data
